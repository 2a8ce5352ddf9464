"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes. Every
manager is built per request around the request-scoped DB session.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from core.database import get_db
from utils import audit_recorder
from utils import elevation_manager
from utils import identity_provider
from utils import invite_manager
from utils import mail_transport
from utils import outbox_relay
from utils import permission_oracle
from utils import profile_manager
from utils import student_manager


def get_profile_manager(db: Session = Depends(get_db)) -> profile_manager.ProfileManager:
    """Get ProfileManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        ProfileManager instance.
    """
    return profile_manager.ProfileManager(db)


def get_permission_oracle(
    db: Session = Depends(get_db),
) -> permission_oracle.PermissionOracle:
    """Get PermissionOracle instance with request-scoped DB session."""
    return permission_oracle.PermissionOracle(db)


def get_invite_manager(db: Session = Depends(get_db)) -> invite_manager.InviteManager:
    """Get InviteManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        InviteManager instance.
    """
    return invite_manager.InviteManager(db)


def get_elevation_manager(
    db: Session = Depends(get_db),
) -> elevation_manager.ElevationManager:
    """Get ElevationManager instance with request-scoped DB session."""
    return elevation_manager.ElevationManager(db)


def get_student_manager(db: Session = Depends(get_db)) -> student_manager.StudentManager:
    """Get StudentManager instance with request-scoped DB session."""
    return student_manager.StudentManager(db)


def get_mail_transport():
    """Get the configured mail transport, or None to log messages instead."""
    return mail_transport.build_transport()


def get_outbox_relay(
    db: Session = Depends(get_db),
    transport=Depends(get_mail_transport),
) -> outbox_relay.OutboxRelay:
    """Get OutboxRelay instance with request-scoped DB session.

    Args:
        db: Database session.
        transport: Mail transport from configuration.

    Returns:
        OutboxRelay instance.
    """
    return outbox_relay.OutboxRelay(db, transport)


def get_audit_recorder(db: Session = Depends(get_db)) -> audit_recorder.AuditRecorder:
    """Get AuditRecorder instance with request-scoped DB session."""
    return audit_recorder.AuditRecorder(db)


def get_identity_provider(
    db: Session = Depends(get_db),
) -> identity_provider.IdentityProvider:
    """Get IdentityProvider instance with request-scoped DB session."""
    return identity_provider.IdentityProvider(db)


# Type aliases for dependency injection
ProfileManagerDep = Annotated[
    profile_manager.ProfileManager, Depends(get_profile_manager)
]
PermissionOracleDep = Annotated[
    permission_oracle.PermissionOracle, Depends(get_permission_oracle)
]
InviteManagerDep = Annotated[
    invite_manager.InviteManager, Depends(get_invite_manager)
]
ElevationManagerDep = Annotated[
    elevation_manager.ElevationManager, Depends(get_elevation_manager)
]
StudentManagerDep = Annotated[
    student_manager.StudentManager, Depends(get_student_manager)
]
OutboxRelayDep = Annotated[
    outbox_relay.OutboxRelay, Depends(get_outbox_relay)
]
AuditRecorderDep = Annotated[
    audit_recorder.AuditRecorder, Depends(get_audit_recorder)
]
IdentityProviderDep = Annotated[
    identity_provider.IdentityProvider, Depends(get_identity_provider)
]
