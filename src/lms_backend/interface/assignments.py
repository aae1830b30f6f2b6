from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, model_validator
from lms_backend.interface.sections import CourseList, SectionList
from lms_backend.interface.users import UserList

class AssignmentCreate(BaseModel):
    """Assign a teacher to one course (``course_id``) or several (``course_ids``)."""
    teacher_id: str
    section_id: str
    course_id: Optional[str] = None
    course_ids: Optional[List[str]] = None

    @model_validator(mode='after')
    def require_courses(self):
        if self.course_id is None and not self.course_ids:
            raise ValueError("course_id or course_ids is required")
        if self.course_id is not None and self.course_ids:
            raise ValueError("course_id and course_ids are mutually exclusive")
        return self

class AssignmentRemove(BaseModel):
    teacher_id: str
    section_id: str
    course_id: str

class AssignmentGet(BaseModel):
    id: str
    section_id: str
    course_id: str
    teacher_id: str
    assigned_by: Optional[str] = None
    assigned_at: datetime
    is_active: bool
    academic_year: Optional[str] = None
    semester: Optional[str] = None
    removed_at: Optional[datetime] = None
    removed_by: Optional[str] = None
    previous_assignment_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class AssignmentList(AssignmentGet):
    section: Optional[SectionList] = None
    course: Optional[CourseList] = None
    teacher: Optional[UserList] = None

class AssignmentResultGet(BaseModel):
    status: str
    assignment: AssignmentGet

class BulkAssignmentResultGet(BaseModel):
    results: List[Dict[str, Any]] = []
    errors: List[Dict[str, Any]] = []
    summary: Dict[str, int] = {}

class TeacherSectionAssignmentGet(BaseModel):
    section: SectionList
    assignment_type: str
    courses: List[CourseList] = []
    specific_assignments: List[AssignmentGet] = []

    model_config = ConfigDict(from_attributes=True)

class AssignmentValidationReport(BaseModel):
    total_assignments: int
    issues: List[Dict[str, Any]] = []
    department_mismatches: int = 0
    orphaned_assignments: int = 0
    detached_courses: int = 0
