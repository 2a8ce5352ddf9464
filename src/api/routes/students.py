"""Student record routes."""

from fastapi import APIRouter, Depends

from api.routes.auth import get_current_caller
from core.dependencies import StudentManagerDep
from schemas.user import Caller

router = APIRouter(prefix="/api/students", tags=["Students"])


@router.post("/{student_id}/deactivate", summary="Deactivate a student record")
def deactivate_student(
    student_id: str,
    caller: Caller = Depends(get_current_caller),
    student_manager: StudentManagerDep = None,
) -> dict:
    """Soft-delete a student record.

    Permission requirements:
    - ``deactivate_student`` (HOD / ADMIN by default)
    """
    student_manager.deactivate(caller.caller_id, student_id)
    return {"success": True}
