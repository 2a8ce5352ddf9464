import os
import tempfile

# Must be set before the application modules read their configuration
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="attendance-access-"))
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ["SENDGRID_API_KEY"] = ""
os.environ["SMTP_HOST"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from api.routes.auth import create_access_token
from app import app
from core.database import build_engine, get_db, init_db
from core.dependencies import get_mail_transport
from models.student import StudentModel
from utils.clock import utc_now_iso
from utils.invite_manager import InviteManager
from utils.profile_manager import ProfileManager


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'access.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mail_transport] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_profile(db):
    """Create a caller profile and return its id."""

    def _make(user_id, role="STUDENT", scopes=None, permissions=None, email=None, active=True):
        ProfileManager(db).upsert_profile(
            user_id,
            role=role,
            allowed_scopes=scopes or [],
            permissions=permissions or [],
            email=email or f"{user_id}@example.edu",
            is_active=active,
        )
        db.commit()
        return user_id

    return _make


@pytest.fixture
def make_student(db):
    def _make(student_id, roll_number="21CE001", class_id="2CEIT-B"):
        now = utc_now_iso()
        db.add(
            StudentModel(
                student_id=student_id,
                roll_number=roll_number,
                full_name="Test Student",
                class_id=class_id,
                active=True,
                created_at=now,
                updated_at=now,
            )
        )
        db.commit()
        return student_id

    return _make


@pytest.fixture
def issue_invite(db, make_profile):
    """Issue an invite from a fresh HOD and return (invite_id, token, issuer_id)."""

    def _issue(invited_email="invitee@example.edu", role="CR", scopes=None, issuer="hod-issuer"):
        make_profile(issuer, role="HOD")
        result = InviteManager(db).create_invite(
            issuer, invited_email=invited_email, role=role, allowed_scopes=scopes or ["2CEIT-B"]
        )
        return result.invite_id, result.token, issuer

    return _issue


@pytest.fixture
def auth_headers():
    """Build bearer headers for a caller without a local identity."""

    def _headers(user_id, email=None):
        token = create_access_token({"sub": user_id, "email": email or f"{user_id}@example.edu"})
        return {"Authorization": f"Bearer {token}"}

    return _headers
