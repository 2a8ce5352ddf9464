from sqlalchemy import Boolean, Column, String
from .base import Base


class StudentModel(Base):
    __tablename__ = "students"

    student_id = Column(String, primary_key=True, index=True)
    roll_number = Column(String, index=True, nullable=False)
    full_name = Column(String, nullable=True)
    class_id = Column(String, index=True, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)
