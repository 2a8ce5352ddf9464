"""ORM models.

Importing this package registers every table with ``Base.metadata``.
"""

from .base import Base
from .audit_event import AuditEventModel
from .elevation_request import ElevationRequestModel
from .identity import IdentityModel
from .invite import InviteModel
from .outbox_message import OutboxMessageModel
from .student import StudentModel
from .user import UserModel

__all__ = [
    "Base",
    "AuditEventModel",
    "ElevationRequestModel",
    "IdentityModel",
    "InviteModel",
    "OutboxMessageModel",
    "StudentModel",
    "UserModel",
]
