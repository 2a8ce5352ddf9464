import pytest
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import (
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
)
from models.audit_event import AuditEventModel
from utils.audit_recorder import AuditRecorder
from utils.student_manager import StudentManager


def test_deactivate_soft_deletes_and_audits(db, make_profile, make_student):
    make_profile("hod", role="HOD")
    make_student("stu-1")

    assert StudentManager(db).deactivate("hod", "stu-1") is True

    assert StudentManager(db).get_student("stu-1").active is False
    event = db.query(AuditEventModel).one()
    assert event.action == "deactivate_student"
    assert event.target_id == "stu-1"
    assert event.actor_id == "hod"


def test_deactivate_failures(db, make_profile, make_student):
    make_profile("hod", role="HOD")
    make_profile("cr", role="CR")
    make_student("stu-1")
    manager = StudentManager(db)

    with pytest.raises(NotFoundError):
        manager.deactivate("hod", "missing")
    with pytest.raises(InvalidArgumentError):
        manager.deactivate("hod", "")
    with pytest.raises(PermissionDeniedError):
        manager.deactivate("cr", "stu-1")
    assert manager.get_student("stu-1").active is True
    assert db.query(AuditEventModel).count() == 0


def test_audit_failure_keeps_student_active(db, make_profile, make_student, monkeypatch):
    make_profile("hod", role="HOD")
    make_student("stu-1")

    def broken_record(self, *args, **kwargs):
        raise SQLAlchemyError("audit store unavailable")

    monkeypatch.setattr(AuditRecorder, "record", broken_record)

    with pytest.raises(InternalError):
        StudentManager(db).deactivate("hod", "stu-1")

    assert StudentManager(db).get_student("stu-1").active is True
