from typing import Any, Dict, List, Optional
from fastapi import HTTPException, status

class NotFoundException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_404_NOT_FOUND
        self.detail = detail or "Not found"

class ForbiddenException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_403_FORBIDDEN
        self.detail = detail or "Forbidden"

class BadRequestException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_400_BAD_REQUEST
        self.detail = detail or "Bad request"

class UnauthorizedException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_401_UNAUTHORIZED
        self.detail = detail or "Unauthorized"

class ConflictException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_409_CONFLICT
        self.detail = detail or "Conflict"

class UnprocessableException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        self.detail = detail or "Unprocessable entity"

class InternalServerException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        self.detail = detail or "Internal server error"


# Domain failures. Each detail carries a machine readable code plus the
# entity names a caller needs to build a message.

def entity_not_found(entity: str, entity_id: Any) -> NotFoundException:
    return NotFoundException(detail={
        "code": "not_found",
        "entity": entity,
        "id": str(entity_id) if entity_id is not None else None,
        "message": f"{entity} not found",
    })

class NotMemberException(NotFoundException):
    def __init__(self, student_name: str, section_name: str):
        super().__init__(detail={
            "code": "not_member",
            "student": student_name,
            "section": section_name,
            "message": f'Student "{student_name}" is not in section "{section_name}"',
        })

class AlreadyAssignedException(ConflictException):
    def __init__(self, student_name: str, section_name: str):
        super().__init__(detail={
            "code": "already_assigned",
            "student": student_name,
            "section": section_name,
            "message": f'Student "{student_name}" is already assigned to section "{section_name}"',
        })

class AssignmentConflictException(ConflictException):
    def __init__(self, section_name: str, course_title: str, teacher_name: Optional[str] = None):
        super().__init__(detail={
            "code": "assignment_conflict",
            "section": section_name,
            "course": course_title,
            "assigned_teacher": teacher_name,
            "message": f'Course "{course_title}" in section "{section_name}" already has a different teacher assigned',
        })

class CrossSectionConflictException(ConflictException):
    def __init__(self, student_name: str, existing_section_name: str):
        super().__init__(detail={
            "code": "cross_section_conflict",
            "student": student_name,
            "existing_section": existing_section_name,
            "message": f'Student "{student_name}" is already assigned to section "{existing_section_name}". A student can only be in one section.',
        })

class CapacityExceededException(ConflictException):
    def __init__(self, section_name: str, capacity: int, requested: int):
        super().__init__(detail={
            "code": "capacity_exceeded",
            "section": section_name,
            "capacity": capacity,
            "requested": requested,
            "message": f'Adding {requested} student(s) would exceed the capacity of section "{section_name}" ({capacity})',
        })

class DepartmentMismatchException(UnprocessableException):
    def __init__(self, mismatches: List[Dict[str, Any]]):
        first = mismatches[0]
        super().__init__(detail={
            "code": "department_mismatch",
            "teacher_department": first["teacher_department"],
            "course_department": first["course_department"],
            "mismatches": mismatches,
            "message": "Teachers can only be assigned to courses from their own department",
        })

class EscalationRequiredException(ConflictException):
    def __init__(self, lock_id: str, teacher_unlock_count: int):
        super().__init__(detail={
            "code": "escalation_required",
            "lock_id": lock_id,
            "teacher_unlock_count": teacher_unlock_count,
            "required_level": "DEAN",
            "message": "Teacher unlock limit exceeded. Dean authorization required.",
        })
