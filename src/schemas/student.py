"""Student record schema definitions."""

from typing import Optional

from pydantic import BaseModel


class StudentInfo(BaseModel):
    student_id: str
    roll_number: str
    full_name: Optional[str] = None
    class_id: Optional[str] = None
    active: bool
    created_at: str
    updated_at: str
