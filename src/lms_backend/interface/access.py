from typing import List
from pydantic import BaseModel

class CourseAccessGet(BaseModel):
    user_id: str
    course_id: str
    allowed: bool

class AccessibleCoursesGet(BaseModel):
    user_id: str
    course_ids: List[str] = []
