"""Business logic services"""

from interaction_capture.services.form_rules import (
    FieldRequirements,
    prune_answers,
    resolve_fields,
)
from interaction_capture.services.form_options import FormOptionSets
from interaction_capture.services.record_validator import (
    InteractionRecord,
    collect_violations,
    validate_record,
)
from interaction_capture.services.persistence_gateway import (
    DatabaseGateway,
    PersistenceGateway,
    RestTableGateway,
    SubmitResult,
    build_gateway,
)
from interaction_capture.services.form_engine import FormEngine
from interaction_capture.services.option_cache import (
    CachedOptions,
    OptionCache,
    get_option_cache,
)
from interaction_capture.services.auth import (
    verify_password,
    get_password_hash,
    create_access_token,
    decode_access_token,
)

__all__ = [
    "FieldRequirements",
    "prune_answers",
    "resolve_fields",
    "FormOptionSets",
    "InteractionRecord",
    "collect_violations",
    "validate_record",
    "DatabaseGateway",
    "PersistenceGateway",
    "RestTableGateway",
    "SubmitResult",
    "build_gateway",
    "FormEngine",
    "CachedOptions",
    "OptionCache",
    "get_option_cache",
    "verify_password",
    "get_password_hash",
    "create_access_token",
    "decode_access_token",
]
