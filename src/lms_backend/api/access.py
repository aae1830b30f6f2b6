from typing import Annotated
from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends
from lms_backend.database import get_db
from lms_backend.interface.access import AccessibleCoursesGet, CourseAccessGet
from lms_backend.permissions.access import AccessResolver
from lms_backend.permissions.auth import get_current_principal
from lms_backend.permissions.principal import Principal

access_router = APIRouter()


@access_router.get("/courses/{course_id}", response_model=CourseAccessGet)
def check_course_access(course_id: str, permissions: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):

    allowed = AccessResolver(db).can_access_course(permissions, course_id)

    return CourseAccessGet(user_id=permissions.user_id, course_id=course_id, allowed=allowed)


@access_router.get("/courses", response_model=AccessibleCoursesGet)
def list_accessible_courses(permissions: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):

    course_ids = AccessResolver(db).accessible_course_ids(permissions)

    return AccessibleCoursesGet(user_id=permissions.user_id, course_ids=sorted(course_ids))
