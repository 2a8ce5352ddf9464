import pytest
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import (
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
)
from models.audit_event import AuditEventModel
from models.elevation_request import ElevationRequestModel
from models.user import UserModel
from utils.audit_recorder import AuditRecorder
from utils.elevation_manager import DEFAULT_CR_PERMISSIONS, ElevationManager


def test_submit_for_self_targets_the_caller(db, make_profile):
    make_profile("student", role="STUDENT")

    request = ElevationManager(db).submit_request(
        "student", "student@example.edu", name="Asha", allowed_scopes=["2CEIT-B"]
    )

    assert request.status == "pending"
    assert request.target_user_id == "student"
    assert request.requested_role == "CR"
    assert request.allowed_scopes == ["2CEIT-B"]


def test_submit_rejects_top_level_roles(db):
    with pytest.raises(InvalidArgumentError):
        ElevationManager(db).submit_request("student", "s@example.edu", requested_role="HOD")


def test_approve_promotes_and_audits_once(db, make_profile):
    make_profile("student", role="STUDENT")
    make_profile("hod", role="HOD")
    manager = ElevationManager(db)
    request = manager.submit_request(
        "student", "student@example.edu", name="Asha", allowed_scopes=["2CEIT-B"]
    )

    first = manager.approve("hod", request.request_id)
    second = manager.approve("hod", request.request_id)

    assert first.success and first.target_id == "student"
    assert second.success and second.message == "Already approved"
    profile = db.query(UserModel).filter(UserModel.user_id == "student").one()
    assert profile.role == "CR"
    assert profile.allowed_scopes == ["2CEIT-B"]
    assert set(DEFAULT_CR_PERMISSIONS) <= set(profile.permissions)
    events = db.query(AuditEventModel).filter(AuditEventModel.action == "approve_cr").all()
    assert len(events) == 1
    assert events[0].target_id == "student"
    assert events[0].details == {"requestId": request.request_id}
    stored = db.query(ElevationRequestModel).one()
    assert stored.status == "approved" and stored.reviewed_by == "hod"


def test_approve_resolves_target_by_email(db, make_profile):
    make_profile("cc", role="CC", scopes=["2CEIT-B"])
    make_profile("rep", role="STUDENT", email="rep@example.edu")
    make_profile("admin", role="ADMIN")
    manager = ElevationManager(db)
    request = manager.submit_request(
        "cc", "cc@example.edu", name="Rep", email="Rep@Example.edu", allowed_scopes=["2CEIT-B"]
    )

    result = manager.approve("admin", request.request_id)

    assert result.target_id == "rep"


def test_approve_with_explicit_target(db, make_profile):
    make_profile("hod", role="HOD")
    manager = ElevationManager(db)
    request = manager.submit_request("someone", "someone@example.edu", email="new@example.edu")

    result = manager.approve("hod", request.request_id, target_id="chosen")

    assert result.target_id == "chosen"
    assert db.query(UserModel).filter(UserModel.user_id == "chosen").one().role == "CR"


def test_approve_requires_permission_and_existing_request(db, make_profile):
    make_profile("cc", role="CC")
    make_profile("hod", role="HOD")
    manager = ElevationManager(db)

    with pytest.raises(PermissionDeniedError):
        manager.approve("cc", "anything")
    with pytest.raises(NotFoundError):
        manager.approve("hod", "missing")
    with pytest.raises(InvalidArgumentError):
        manager.approve("hod", "")
    assert db.query(AuditEventModel).count() == 0


def test_list_requests_is_for_reviewers(db, make_profile):
    make_profile("hod", role="HOD")
    make_profile("student", role="STUDENT")
    manager = ElevationManager(db)
    manager.submit_request("student", "student@example.edu")

    assert len(manager.list_requests("hod", status="pending")) == 1
    with pytest.raises(PermissionDeniedError):
        manager.list_requests("student")


def test_audit_failure_rolls_back_approval(db, make_profile, monkeypatch):
    make_profile("student", role="STUDENT")
    make_profile("hod", role="HOD")
    manager = ElevationManager(db)
    request = manager.submit_request("student", "student@example.edu", allowed_scopes=["2CEIT-B"])

    def broken_record(self, *args, **kwargs):
        raise SQLAlchemyError("audit store unavailable")

    monkeypatch.setattr(AuditRecorder, "record", broken_record)

    with pytest.raises(InternalError):
        manager.approve("hod", request.request_id)

    stored = db.query(ElevationRequestModel).one()
    assert stored.status == "pending"
    assert stored.reviewed_by is None
    profile = db.query(UserModel).filter(UserModel.user_id == "student").one()
    assert profile.role == "STUDENT"
    assert profile.permissions == []
