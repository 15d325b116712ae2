"""Form engine - answer state, derived field sets and submission for one form.

One ``FormEngine`` backs one form in use. It keeps the current answers,
re-derives the visible/required fields after every change (dropping answers
for fields that became hidden) and submits a validated record through a
``PersistenceGateway``.

Only one submission may be outstanding per engine; a second ``submit`` while
one is in flight raises ``SubmissionInProgress`` instead of queueing.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

from interaction_capture.exceptions import (
    SubmissionInProgress,
    TransportError,
    ValidationError,
)
from interaction_capture.services import form_rules
from interaction_capture.services.form_options import FormOptionSets
from interaction_capture.services.form_rules import FieldRequirements
from interaction_capture.services.persistence_gateway import PersistenceGateway, SubmitResult
from interaction_capture.services.record_validator import (
    Clock,
    InteractionRecord,
    validate_record,
)

logger = logging.getLogger(__name__)


class FormEngine:
    """Answer state for one interaction form."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        options: Optional[FormOptionSets] = None,
        clock: Optional[Clock] = None,
        submit_timeout: Optional[float] = None,
    ) -> None:
        self.gateway = gateway
        self.options = options or FormOptionSets.defaults()
        self.clock = clock
        self.submit_timeout = submit_timeout
        self._answers: Dict[str, Any] = {}
        self._in_flight = False

    @property
    def answers(self) -> Dict[str, Any]:
        return dict(self._answers)

    @property
    def requirements(self) -> FieldRequirements:
        return form_rules.resolve_fields(self._answers)

    @property
    def submitting(self) -> bool:
        return self._in_flight

    def set_answer(self, field: str, value: Any) -> FieldRequirements:
        """Record one answer and return the re-derived field sets.

        ``None`` clears the answer. Answers for fields hidden by the change
        are dropped.
        """
        return self.set_answers({field: value})

    def set_answers(self, answers: Mapping[str, Any]) -> FieldRequirements:
        """Apply several answers at once, pruning only after all are set."""
        unknown = [field for field in answers if field not in form_rules.FIELD_ORDER]
        if unknown:
            raise KeyError(f"Unknown form field: {unknown[0]}")
        for field, value in answers.items():
            if value is None:
                self._answers.pop(field, None)
            else:
                self._answers[field] = value
        self._answers = form_rules.prune_answers(self._answers)
        return self.requirements

    def load(self, answers: Mapping[str, Any]) -> None:
        """Replace the answer state with a submitted answer set as-is.

        Nothing is pruned, so values for hidden fields reach the validator
        and are reported instead of silently dropped.
        """
        self._answers = {
            field: answers[field]
            for field in form_rules.FIELD_ORDER
            if field in answers and answers[field] is not None
        }

    def reset(self) -> None:
        self._answers = {}

    def validate(self) -> InteractionRecord:
        """Validate the current answers; raises ``ValidationError``."""
        return validate_record(self._answers, options=self.options, clock=self.clock)

    async def submit(self, timeout: Optional[float] = None) -> SubmitResult:
        """Validate and hand the record to the gateway.

        The form is cleared only when the store accepts the record, so a
        rejected or failed submission can be corrected and retried.

        Raises:
            SubmissionInProgress: another submission from this form is outstanding
            ValidationError: the answers break the field rules
            TransportError: store unreachable or slower than ``timeout``
            ConfigurationError: store not configured
        """
        if self._in_flight:
            raise SubmissionInProgress()

        self._in_flight = True
        try:
            try:
                record = self.validate()
            except ValidationError as exc:
                logger.info("Interaction rejected by validation: %s", exc)
                raise

            deadline = timeout if timeout is not None else self.submit_timeout
            try:
                result = await asyncio.wait_for(self.gateway.submit(record), timeout=deadline)
            except asyncio.TimeoutError as exc:
                logger.warning(
                    "Submission timed out after %ss (gateway=%s)",
                    deadline,
                    self.gateway.name,
                )
                raise TransportError(
                    "The data store did not respond in time. Please try again.",
                    cause=exc,
                ) from exc

            if result.success:
                self.reset()
            else:
                logger.warning("Interaction rejected by store: %s", result.reason)
            return result
        finally:
            self._in_flight = False
