"""Invite lifecycle management.

This module issues, lists, revokes and redeems invites. An invite moves from
pending to exactly one of redeemed, revoked or expired:

- redeemed and revoked are persisted (``used`` is set in both cases, so a
  revoked invite can never be redeemed afterwards);
- expired is derived from ``expires_at`` at read and redeem time.

Every transition is written together with its audit event, and redemption
and revocation flip ``used`` with a conditional update so that only one of
any number of concurrent attempts can succeed.
"""

import logging
import re
import uuid
from datetime import timedelta
from typing import List, Optional
from urllib.parse import quote

from sqlalchemy.orm import Session

from config import (
    APP_NAME,
    APP_URL,
    DYNAMIC_LINK_DOMAIN,
    INVITE_DEFAULT_TTL_DAYS,
    INVITE_LIST_LIMIT,
    INVITE_MAX_TTL_DAYS,
)
from core.exceptions import (
    DeadlineExceededError,
    FailedPreconditionError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
)
from models.invite import InviteModel
from schemas.invite import AcceptInviteResponse, CreateInviteResponse, InviteSummary
from schemas.user import ROLE_RANK, parse_role
from utils import token_codec
from utils.clock import parse_iso, to_iso, utc_now, utc_now_iso
from utils.converters import model_to_invite_summary
from utils.gated_mutation import GatedMutationExecutor, MutationResult
from utils.outbox_relay import OutboxRelay
from utils.permission_oracle import (
    INVITE_ISSUER_ROLES,
    SCOPE_LIMITED_ROLE,
    PermissionOracle,
    clean_scopes,
    within_scope,
)
from utils.profile_manager import ProfileManager

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_ttl_days(ttl_days: Optional[int]) -> int:
    """Return the invite lifetime in days.

    Raises:
        InvalidArgumentError: If ``ttl_days`` exceeds INVITE_MAX_TTL_DAYS.
    """
    if ttl_days is None or ttl_days <= 0:
        return INVITE_DEFAULT_TTL_DAYS
    if ttl_days > INVITE_MAX_TTL_DAYS:
        raise InvalidArgumentError(f"ttl_days must be at most {INVITE_MAX_TTL_DAYS}")
    return ttl_days


def build_invite_link(token: str) -> str:
    return f"{APP_URL}/accept-invite?token={quote(token, safe='')}"


def build_invite_email(role: str, invite_link: str, ttl_days: int) -> dict:
    """Compose the subject, body and dynamic link of an invite email."""
    dynamic_link = None
    if DYNAMIC_LINK_DOMAIN:
        dynamic_link = f"https://{DYNAMIC_LINK_DOMAIN}/?link={quote(invite_link, safe='')}"

    lines = [
        "Hello,",
        "",
        f"You have been invited to join the {APP_NAME} app as {role}.",
        "Click the link to accept:",
        "",
        invite_link,
    ]
    if dynamic_link:
        lines += ["", "If clicking from mobile, try this link:", "", dynamic_link]
    lines += ["", f"This link expires in {ttl_days} days."]
    return {
        "subject": f"You're invited to join the {APP_NAME} app as {role}",
        "body": "\n".join(lines),
        "dynamic_link": dynamic_link,
    }


class InviteManager:
    """Manages invite creation, listing, revocation and redemption."""

    def __init__(self, db: Session):
        """Initialize InviteManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db
        self.oracle = PermissionOracle(db)
        self.executor = GatedMutationExecutor(db, self.oracle)
        self.outbox = OutboxRelay(db)
        self.profiles = ProfileManager(db)

    def _get_model(self, invite_id: str) -> InviteModel:
        model = self.db.query(InviteModel).filter(InviteModel.invite_id == invite_id).first()
        if model is None:
            raise NotFoundError("Invite not found")
        return model

    def create_invite(
        self,
        caller_id: Optional[str],
        invited_email: str,
        role: str,
        allowed_scopes: Optional[List[str]] = None,
        ttl_days: Optional[int] = None,
    ) -> CreateInviteResponse:
        """Issue an invite and queue its email.

        CC callers may only grant scopes they hold themselves; HOD and ADMIN
        callers may grant any scope. Nobody may invite to a role above their
        own.

        Args:
            caller_id: Authenticated issuer.
            invited_email: Address the invite is bound to.
            role: Role granted on redemption.
            allowed_scopes: Scopes granted on redemption.
            ttl_days: Lifetime in days; 7 when missing or non-positive.

        Returns:
            CreateInviteResponse holding the raw token. The token is not
            stored anywhere and cannot be retrieved again.

        Raises:
            UnauthenticatedError: If ``caller_id`` is empty.
            InvalidArgumentError: If the email, role or ttl is invalid.
            PermissionDeniedError: If the caller may not issue this invite.
        """
        if not caller_id:
            raise UnauthenticatedError("Authentication required")

        invited_email = (invited_email or "").strip().lower()
        if not invited_email:
            raise InvalidArgumentError("invited_email is required")
        if not EMAIL_PATTERN.match(invited_email):
            raise InvalidArgumentError(f"Invalid email address: {invited_email}")
        target_role = parse_role(role)
        if target_role is None:
            raise InvalidArgumentError(f"Invalid role: {role}")
        ttl = normalize_ttl_days(ttl_days)
        scopes = clean_scopes(allowed_scopes)

        inviter = self.oracle.find(caller_id)
        if inviter is None or not inviter.active or inviter.role not in INVITE_ISSUER_ROLES:
            logger.warning("Denied create_invite to caller %s", caller_id)
            raise PermissionDeniedError("Insufficient permissions to create invites")
        if ROLE_RANK[target_role] > inviter.rank:
            raise PermissionDeniedError(f"{inviter.role} cannot invite to role {target_role}")
        if inviter.role == SCOPE_LIMITED_ROLE and not within_scope(inviter.scopes, scopes):
            logger.warning(
                "Caller %s requested scopes %s outside %s", caller_id, scopes, inviter.scopes
            )
            raise PermissionDeniedError("Requested scopes exceed inviter scope")

        token, digest = token_codec.issue()
        invite_id = uuid.uuid4().hex
        now = utc_now()
        expires_at = to_iso(now + timedelta(days=ttl))
        invite_link = build_invite_link(token)
        email = build_invite_email(target_role, invite_link, ttl)

        def mutation(db, caller):
            db.add(
                InviteModel(
                    invite_id=invite_id,
                    token_hash=digest,
                    invited_email=invited_email,
                    role=target_role,
                    allowed_scopes=scopes,
                    expires_at=expires_at,
                    used=False,
                    revoked=False,
                    created_by=caller_id,
                    created_at=to_iso(now),
                )
            )
            self.outbox.enqueue(
                recipient=invited_email,
                subject=email["subject"],
                body=email["body"],
                metadata={
                    "inviteId": invite_id,
                    "role": target_role,
                    "allowedScopes": scopes,
                    "dynamicLink": email["dynamic_link"],
                },
            )
            return CreateInviteResponse(invite_id=invite_id, token=token, expires_at=expires_at)

        return self.executor.execute(
            caller_id,
            None,
            mutation,
            "create_invite",
            target_id=invite_id,
            details={"invitedEmail": invited_email, "role": target_role, "allowedScopes": scopes},
        )

    def list_invites(self, caller_id: Optional[str]) -> List[InviteSummary]:
        """List invites visible to the caller, newest first.

        HOD and ADMIN callers see every invite; everyone else sees the
        invites they created.

        Raises:
            UnauthenticatedError: If ``caller_id`` is empty.
        """
        if not caller_id:
            raise UnauthenticatedError("Authentication required")
        query = self.db.query(InviteModel)
        if not self.oracle.is_top_level(caller_id):
            query = query.filter(InviteModel.created_by == caller_id)
        models = (
            query.order_by(InviteModel.created_at.desc()).limit(INVITE_LIST_LIMIT).all()
        )
        now = utc_now()
        return [model_to_invite_summary(m, now) for m in models]

    def revoke_invite(self, caller_id: Optional[str], invite_id: str) -> bool:
        """Revoke a pending invite.

        Revocation sets ``used`` as well as ``revoked`` so that no later
        redemption can succeed. Revoking an already revoked invite succeeds
        without a second audit event.

        Args:
            caller_id: Authenticated caller; must be the creator or HOD/ADMIN.
            invite_id: Invite to revoke.

        Returns:
            True on success.

        Raises:
            UnauthenticatedError: If ``caller_id`` is empty.
            InvalidArgumentError: If ``invite_id`` is empty.
            NotFoundError: If the invite does not exist.
            PermissionDeniedError: If the caller may not revoke it.
            FailedPreconditionError: If the invite was already redeemed.
        """
        if not caller_id:
            raise UnauthenticatedError("Authentication required")
        if not invite_id:
            raise InvalidArgumentError("invite_id is required")

        invite = self._get_model(invite_id)
        if invite.created_by != caller_id and not self.oracle.is_top_level(caller_id):
            raise PermissionDeniedError("Not allowed to revoke this invite")
        if invite.revoked:
            return True
        if invite.used:
            raise FailedPreconditionError("Invite already used")

        def mutation(db, caller):
            updated = (
                db.query(InviteModel)
                .filter(InviteModel.invite_id == invite_id, InviteModel.used.is_(False))
                .update(
                    {
                        InviteModel.used: True,
                        InviteModel.revoked: True,
                        InviteModel.revoked_by: caller_id,
                        InviteModel.revoked_at: utc_now_iso(),
                    },
                    synchronize_session=False,
                )
            )
            if updated != 1:
                revoked = (
                    db.query(InviteModel.revoked)
                    .filter(InviteModel.invite_id == invite_id)
                    .scalar()
                )
                if revoked:
                    return MutationResult(value=True, changed=False)
                raise FailedPreconditionError("Invite already used")
            return MutationResult(value=True, details={"revokedBy": caller_id})

        return self.executor.execute(
            caller_id, None, mutation, "revoke_invite", target_id=invite_id
        )

    def accept_invite(
        self, caller_id: Optional[str], caller_email: Optional[str], token: str
    ) -> AcceptInviteResponse:
        """Redeem an invite for the authenticated caller.

        The caller's profile receives the invite's role and scopes in the
        same transaction that marks the invite used and writes the audit
        event. A second redemption of the same token always fails.

        Args:
            caller_id: Authenticated caller.
            caller_email: Email asserted by the identity provider.
            token: Raw token from the invite link.

        Returns:
            AcceptInviteResponse with the granted role.

        Raises:
            UnauthenticatedError: If ``caller_id`` is empty.
            InvalidArgumentError: If ``token`` is empty.
            NotFoundError: If no invite matches the token.
            FailedPreconditionError: If the invite was used or revoked.
            DeadlineExceededError: If the invite has expired.
            PermissionDeniedError: If the caller's email is not the invited one.
        """
        if not caller_id:
            raise UnauthenticatedError("Authentication required")
        token = (token or "").strip()
        if not token:
            raise InvalidArgumentError("token is required")

        digest = token_codec.verify(token)
        invite = self.db.query(InviteModel).filter(InviteModel.token_hash == digest).first()
        if invite is None:
            raise NotFoundError("Invite not found")
        if invite.used:
            if invite.revoked:
                raise FailedPreconditionError("Invite has been revoked")
            raise FailedPreconditionError("Invite already used")
        if utc_now() > parse_iso(invite.expires_at):
            raise DeadlineExceededError("Invite expired")

        caller_email = (caller_email or "").strip().lower()
        invited_email = (invite.invited_email or "").strip().lower()
        if invited_email and invited_email != caller_email:
            raise PermissionDeniedError("Signed-in email does not match invited email")

        invite_id = invite.invite_id
        role = invite.role
        scopes = list(invite.allowed_scopes or [])

        def mutation(db, caller):
            updated = (
                db.query(InviteModel)
                .filter(InviteModel.invite_id == invite_id, InviteModel.used.is_(False))
                .update(
                    {
                        InviteModel.used: True,
                        InviteModel.used_by: caller_id,
                        InviteModel.used_at: utc_now_iso(),
                    },
                    synchronize_session=False,
                )
            )
            if updated != 1:
                raise FailedPreconditionError("Invite already used")
            self.profiles.upsert_profile(
                caller_id,
                role=role,
                allowed_scopes=scopes,
                email=caller_email or None,
                is_active=True,
            )
            return MutationResult(
                value=AcceptInviteResponse(success=True, role=role),
                details={"invitedEmail": invited_email, "role": role},
            )

        return self.executor.execute(
            caller_id, None, mutation, "accept_invite", target_id=invite_id
        )
