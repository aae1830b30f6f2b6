from typing import Annotated
from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends
from lms_backend.database import get_db
from lms_backend.interface.sections import (
    StudentAssign,
    StudentAssignResult,
    StudentBulkAssign,
    StudentBulkAssignResult,
)
from lms_backend.permissions.auth import get_current_principal, require_any_role
from lms_backend.permissions.principal import Principal
from lms_backend.permissions.roles import MANAGER_ROLES
from lms_backend.services.memberships import MembershipService

section_router = APIRouter()


@section_router.post("/{section_id}/students", response_model=StudentAssignResult)
def assign_student(section_id: str, payload: StudentAssign, permissions: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):

    require_any_role(permissions, MANAGER_ROLES, "assign students")

    MembershipService(db).assign_student(section_id, payload.student_id)

    return StudentAssignResult(section_id=section_id, student_id=payload.student_id, message="Student assigned to section")


@section_router.post("/{section_id}/students/bulk", response_model=StudentBulkAssignResult)
def assign_students(section_id: str, payload: StudentBulkAssign, permissions: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):

    require_any_role(permissions, MANAGER_ROLES, "assign students")

    outcome = MembershipService(db).assign_students(section_id, payload.student_ids)

    return StudentBulkAssignResult(section_id=section_id, **outcome)


@section_router.delete("/{section_id}/students/{student_id}", response_model=StudentAssignResult)
def remove_student(section_id: str, student_id: str, permissions: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):

    require_any_role(permissions, MANAGER_ROLES, "remove students")

    MembershipService(db).remove_student(section_id, student_id)

    return StudentAssignResult(section_id=section_id, student_id=student_id, message="Student removed from section")
