import pytest

from core.exceptions import (
    AlreadyExistsError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
)
from models.audit_event import AuditEventModel
from models.user import UserModel
from utils.identity_provider import IdentityProvider, hash_password, verify_password


def test_password_hash_round_trip():
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_create_identity_creates_student_profile(db):
    identity = IdentityProvider(db).create_identity(
        "Asha@Example.edu", "s3cret-pass", display_name="Asha"
    )

    assert identity.email == "asha@example.edu"
    profile = db.query(UserModel).filter(UserModel.user_id == identity.uid).one()
    assert profile.role == "STUDENT"
    assert profile.email == "asha@example.edu"
    assert profile.display_name == "Asha"


def test_create_identity_rejects_duplicates_and_bad_email(db):
    provider = IdentityProvider(db)
    provider.create_identity("asha@example.edu", "s3cret-pass")

    with pytest.raises(AlreadyExistsError):
        provider.create_identity("ASHA@example.edu", "another-pass")
    with pytest.raises(InvalidArgumentError):
        provider.create_identity("asha", "s3cret-pass")


def test_authenticate(db):
    provider = IdentityProvider(db)
    identity = provider.create_identity("asha@example.edu", "s3cret-pass")

    assert provider.authenticate("asha@example.edu", "s3cret-pass").uid == identity.uid
    with pytest.raises(UnauthenticatedError):
        provider.authenticate("asha@example.edu", "wrong-pass")
    with pytest.raises(UnauthenticatedError):
        provider.authenticate("nobody@example.edu", "s3cret-pass")

    provider.update_identity(identity.uid, disabled=True)
    with pytest.raises(UnauthenticatedError):
        provider.authenticate("asha@example.edu", "s3cret-pass")


def test_revoke_tokens_bumps_version_and_audits(db, make_profile):
    make_profile("admin", role="ADMIN")
    provider = IdentityProvider(db)
    identity = provider.create_identity("asha@example.edu", "s3cret-pass")

    assert provider.is_token_current(identity.uid, 0)
    provider.revoke_tokens("admin", identity.uid)

    assert not provider.is_token_current(identity.uid, 0)
    assert provider.is_token_current(identity.uid, 1)
    event = db.query(AuditEventModel).one()
    assert event.action == "revoke_user_session"
    assert event.target_id == identity.uid


def test_revoke_tokens_failures(db, make_profile):
    make_profile("admin", role="ADMIN")
    make_profile("cc", role="CC")
    provider = IdentityProvider(db)
    identity = provider.create_identity("asha@example.edu", "s3cret-pass")

    with pytest.raises(PermissionDeniedError):
        provider.revoke_tokens("cc", identity.uid)
    with pytest.raises(NotFoundError):
        provider.revoke_tokens("admin", "missing")


def test_tokens_of_unknown_identities_are_accepted(db):
    assert IdentityProvider(db).is_token_current("external-uid", 0)
