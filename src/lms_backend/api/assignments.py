from typing import Annotated, Optional
from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends
from lms_backend.database import get_db
from lms_backend.interface.assignments import (
    AssignmentCreate,
    AssignmentGet,
    AssignmentList,
    AssignmentRemove,
    AssignmentResultGet,
    AssignmentValidationReport,
    BulkAssignmentResultGet,
    TeacherSectionAssignmentGet,
)
from lms_backend.interface.sections import CourseList, SectionList
from lms_backend.interface.users import UserList
from lms_backend.permissions.access import AccessResolver
from lms_backend.permissions.auth import get_current_principal, require_any_role
from lms_backend.permissions.principal import Principal
from lms_backend.permissions.roles import MANAGER_ROLES, has_any_role
from lms_backend.api.exceptions import ForbiddenException
from lms_backend.services.assignments import AssignmentService

assignment_router = APIRouter()


def _teacher_view(entry) -> TeacherSectionAssignmentGet:
    return TeacherSectionAssignmentGet(
        section=SectionList.model_validate(entry.section),
        assignment_type=entry.assignment_type.value,
        courses=[CourseList.model_validate(c) for c in entry.courses],
        specific_assignments=[AssignmentGet.model_validate(a) for a in entry.specific_assignments],
    )


@assignment_router.post("/assign", response_model=AssignmentResultGet | BulkAssignmentResultGet)
def assign_teacher(payload: AssignmentCreate, permissions: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):

    require_any_role(permissions, MANAGER_ROLES, "assign teachers")

    service = AssignmentService(db)

    if payload.course_ids:
        outcome = service.assign_courses(payload.teacher_id, payload.section_id, payload.course_ids, permissions.user_id)
        return BulkAssignmentResultGet(results=outcome.results, errors=outcome.errors, summary=outcome.summary)

    result = service.assign(payload.section_id, payload.course_id, payload.teacher_id, permissions.user_id)

    return AssignmentResultGet(status=result.status.value, assignment=AssignmentGet.model_validate(result.assignment))


@assignment_router.post("/remove", response_model=AssignmentGet)
def remove_teacher(payload: AssignmentRemove, permissions: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):

    require_any_role(permissions, MANAGER_ROLES, "remove teacher assignments")

    return AssignmentService(db).remove(payload.teacher_id, payload.section_id, payload.course_id, permissions.user_id)


@assignment_router.get("/teacher/{teacher_id}", response_model=list[TeacherSectionAssignmentGet])
def list_teacher_assignments(teacher_id: str, permissions: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):

    if permissions.user_id != teacher_id and not has_any_role(permissions, MANAGER_ROLES):
        raise ForbiddenException(detail={"code": "forbidden", "message": "Not allowed to view another teacher's assignments"})

    return [_teacher_view(entry) for entry in AssignmentService(db).list_for_teacher(teacher_id)]


@assignment_router.get("/section/{section_id}", response_model=list[AssignmentList])
def list_section_assignments(section_id: str, permissions: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):

    if not has_any_role(permissions, MANAGER_ROLES) and not AccessResolver(db).can_access_section(permissions, section_id):
        raise ForbiddenException(detail={"code": "forbidden", "message": "Not allowed to view this section"})

    return AssignmentService(db).list_for_section(section_id)


@assignment_router.get("/section/{section_id}/unassigned-courses", response_model=list[CourseList])
def list_unassigned_courses(section_id: str, permissions: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):

    require_any_role(permissions, MANAGER_ROLES, "list unassigned courses")

    return AssignmentService(db).unassigned_courses(section_id)


@assignment_router.get("/available-teachers/{course_id}", response_model=list[UserList])
def list_available_teachers(course_id: str, permissions: Annotated[Principal, Depends(get_current_principal)], section_id: Optional[str] = None, db: Session = Depends(get_db)):

    require_any_role(permissions, MANAGER_ROLES, "list available teachers")

    return AssignmentService(db).available_teachers(course_id, section_id)


@assignment_router.get("/validate", response_model=AssignmentValidationReport)
def validate_assignments(permissions: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):

    require_any_role(permissions, MANAGER_ROLES, "validate assignments")

    return AssignmentService(db).validate()
