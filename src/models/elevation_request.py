from sqlalchemy import Column, JSON, String
from .base import Base


class ElevationRequestModel(Base):
    __tablename__ = "cr_requests"

    request_id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    invited_email = Column(String, nullable=True)
    requested_role = Column(String, nullable=False, default="CR")
    allowed_scopes = Column(JSON, default=list)
    target_user_id = Column(String, nullable=True)
    status = Column(String, nullable=False, default="pending")  # 'pending' or 'approved'
    submitted_by = Column(String, nullable=True)
    created_at = Column(String, nullable=False)
    reviewed_by = Column(String, nullable=True)
    reviewed_at = Column(String, nullable=True)
