"""Operator command-line entry point.

Commands:
    bootstrap-admin <uid> <email>   Grant ADMIN to an identity. The first
                                    administrator cannot be invited, so it
                                    is seeded here by someone with database
                                    access.
    drain-outbox [limit]            Deliver pending outbox messages; meant
                                    to be run from a scheduler.
"""

import logging
import sys
from typing import List, Optional

from sqlalchemy.orm import Session

from core.database import SessionLocal, init_db
from core.logging_config import setup_logging
from schemas.outbox import DrainOutboxResponse
from schemas.user import CallerProfile, Role
from utils.audit_recorder import AuditRecorder
from utils.converters import model_to_profile
from utils.mail_transport import build_transport
from utils.outbox_relay import OutboxRelay
from utils.profile_manager import ProfileManager

logger = logging.getLogger(__name__)

# Actor recorded for operator commands
SYSTEM_ACTOR = "system"


def bootstrap_admin(db: Session, uid: str, email: Optional[str] = None) -> CallerProfile:
    """Grant ADMIN to ``uid`` and audit the grant.

    Args:
        db: SQLAlchemy Session.
        uid: Identity to promote.
        email: Optional email stored on the profile.

    Returns:
        The updated CallerProfile.
    """
    try:
        model = ProfileManager(db).upsert_profile(
            uid, role=Role.ADMIN.value, email=email, is_active=True
        )
        AuditRecorder(db).record(
            actor_id=SYSTEM_ACTOR,
            action="bootstrap_admin",
            target_id=uid,
            details={"email": email} if email else {},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(model)
    logger.info("Granted ADMIN to %s", uid)
    return model_to_profile(model)


def drain_outbox(db: Session, limit: Optional[int] = None) -> DrainOutboxResponse:
    """Deliver pending outbox messages with the configured transport."""
    return OutboxRelay(db, build_transport()).drain(limit)


def print_usage() -> None:
    """Print available commands."""
    print("Usage:")
    print("  python main.py bootstrap-admin <uid> [email]")
    print("  python main.py drain-outbox [limit]")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = list(sys.argv[1:] if argv is None else argv)
    setup_logging()
    if not args:
        print_usage()
        return 2

    command, rest = args[0], args[1:]
    limit = None
    if command == "drain-outbox" and rest:
        try:
            limit = int(rest[0])
        except ValueError:
            print(f"Invalid limit: {rest[0]}")
            print_usage()
            return 2

    init_db()
    db = SessionLocal()
    try:
        if command == "bootstrap-admin" and rest:
            profile = bootstrap_admin(db, rest[0], rest[1] if len(rest) > 1 else None)
            print(f"{profile.user_id} is now {profile.role}")
        elif command == "drain-outbox":
            result = drain_outbox(db, limit)
            print(f"Processed {result.processed} of {len(result.results)} message(s)")
            for item in result.results:
                suffix = f" ({item.error})" if item.error else ""
                print(f"  {item.id}: {item.status}{suffix}")
        else:
            print_usage()
            return 2
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
