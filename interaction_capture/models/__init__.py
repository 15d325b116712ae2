"""SQLAlchemy ORM models"""

from interaction_capture.models.admin_user import AdminUser
from interaction_capture.models.form_option import FormOption
from interaction_capture.models.interaction import Interaction

__all__ = [
    "AdminUser",
    "FormOption",
    "Interaction",
]
