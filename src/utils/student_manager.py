"""Student record management utilities."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from core.exceptions import InvalidArgumentError, NotFoundError
from models.student import StudentModel
from schemas.student import StudentInfo
from utils.clock import utc_now_iso
from utils.converters import model_to_student
from utils.gated_mutation import GatedMutationExecutor, MutationResult

logger = logging.getLogger(__name__)


class StudentManager:
    """Manages student records. Records are soft-deactivated, never deleted."""

    def __init__(self, db: Session):
        self.db = db
        self.executor = GatedMutationExecutor(db)

    def get_student(self, student_id: str) -> StudentInfo:
        model = self.db.query(StudentModel).filter(StudentModel.student_id == student_id).first()
        if model is None:
            raise NotFoundError("Student not found")
        return model_to_student(model)

    def deactivate(self, caller_id: Optional[str], student_id: str) -> bool:
        """Soft-delete a student record.

        Raises:
            UnauthenticatedError: If ``caller_id`` is empty.
            PermissionDeniedError: If the caller lacks ``deactivate_student``.
            InvalidArgumentError: If ``student_id`` is empty.
            NotFoundError: If the student does not exist.
        """

        def mutation(db, caller):
            if not student_id:
                raise InvalidArgumentError("student_id is required")
            model = db.query(StudentModel).filter(StudentModel.student_id == student_id).first()
            if model is None:
                raise NotFoundError("Student not found")
            model.active = False
            model.updated_at = utc_now_iso()
            return MutationResult(value=True)

        return self.executor.execute(
            caller_id,
            "deactivate_student",
            mutation,
            "deactivate_student",
            target_id=student_id,
        )
