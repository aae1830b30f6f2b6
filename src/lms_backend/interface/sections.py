from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from lms_backend.interface.base import BaseEntityList

class CourseList(BaseModel):
    id: str
    title: str
    code: Optional[str] = None
    department_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class SectionList(BaseEntityList):
    id: str
    name: str
    school_id: str
    department_id: Optional[str] = None
    capacity: int
    teacher_id: Optional[str] = None
    academic_year: Optional[str] = None
    semester: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class StudentAssign(BaseModel):
    student_id: str

class StudentBulkAssign(BaseModel):
    student_ids: List[str] = Field(min_length=1)

class StudentAssignResult(BaseModel):
    section_id: str
    student_id: str
    message: str

class StudentBulkAssignResult(BaseModel):
    section_id: str
    assigned: List[str] = []
    skipped: List[str] = []
