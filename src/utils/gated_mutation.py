"""Permission-checked, audited mutations.

A gated mutation is a permission check followed by a state change and its
audit row, committed together or not at all.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import AccessServiceError, InternalError
from utils.audit_recorder import AuditRecorder
from utils.permission_oracle import CallerPermissions, PermissionOracle

logger = logging.getLogger(__name__)


@dataclass
class MutationResult:
    """Outcome of a mutation function.

    Attributes:
        value: Returned to the caller of ``execute``.
        target_id: Overrides the audit target when known only after mutating.
        details: Merged into the audit details.
        changed: False marks an idempotent no-op; nothing is committed or audited.
    """

    value: Any = None
    target_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    changed: bool = True


MutationFn = Callable[[Session, CallerPermissions], Any]


class GatedMutationExecutor:
    """Runs mutations behind the permission oracle with an audit trail."""

    def __init__(self, db: Session, oracle: Optional[PermissionOracle] = None):
        self.db = db
        self.oracle = oracle or PermissionOracle(db)
        self.audit = AuditRecorder(db)

    def execute(
        self,
        caller_id: Optional[str],
        required_permission: Optional[str],
        mutation_fn: MutationFn,
        audit_action: str,
        target_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Check permission, run ``mutation_fn`` and audit it atomically.

        Args:
            caller_id: Authenticated caller.
            required_permission: Permission to check, or None when the caller
                already passed an operation-specific check.
            mutation_fn: Called with the session and the resolved caller. May
                return a MutationResult; any other value counts as changed.
            audit_action: Action tag for the audit event.
            target_id: Audit target, unless the result supplies one.
            details: Audit details.

        Returns:
            The mutation's value.

        Raises:
            UnauthenticatedError: If ``caller_id`` is empty.
            PermissionDeniedError: If the caller lacks the permission.
            InternalError: If the store fails; nothing is committed.
        """
        if required_permission is not None:
            caller = self.oracle.require(caller_id, required_permission)
        else:
            caller = self.oracle.find(caller_id) or CallerPermissions(
                user_id=caller_id or "", role=""
            )

        try:
            outcome = mutation_fn(self.db, caller)
            if not isinstance(outcome, MutationResult):
                outcome = MutationResult(value=outcome)
            if not outcome.changed:
                self.db.rollback()
                return outcome.value

            audit_details = dict(details or {})
            audit_details.update(outcome.details)
            self.audit.record(
                actor_id=caller_id,
                action=audit_action,
                target_id=outcome.target_id or target_id,
                details=audit_details,
            )
            self.db.commit()
        except AccessServiceError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("%s by %s rolled back: %s", audit_action, caller_id, e)
            raise InternalError(f"Failed to apply {audit_action}") from e

        logger.info("%s applied by %s", audit_action, caller_id)
        return outcome.value
