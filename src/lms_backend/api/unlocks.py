from typing import Annotated
from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends
from lms_backend.database import get_db
from lms_backend.interface.unlocks import LockCreate, LockGet, UnlockRequest
from lms_backend.permissions.auth import get_current_principal, require_any_role
from lms_backend.permissions.principal import Principal
from lms_backend.permissions.roles import MANAGER_ROLES, TEACHER, has_any_role
from lms_backend.api.exceptions import ForbiddenException
from lms_backend.services.unlocks import UnlockService

unlock_router = APIRouter()

STAFF_ROLES = (TEACHER,) + MANAGER_ROLES


@unlock_router.post("/locks", response_model=LockGet)
def create_lock(payload: LockCreate, permissions: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):

    require_any_role(permissions, STAFF_ROLES, "lock content")

    return UnlockService(db).lock(payload.student_id, payload.target_type, payload.target_id, payload.reason, payload.course_id)


@unlock_router.get("/locks/{lock_id}", response_model=LockGet)
def get_lock(lock_id: str, permissions: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):

    lock = UnlockService(db).get(lock_id)

    if lock.student_id != permissions.user_id and not has_any_role(permissions, STAFF_ROLES):
        raise ForbiddenException(detail={"code": "forbidden", "message": "Not allowed to view this lock"})

    return lock


@unlock_router.post("/locks/{lock_id}/teacher-unlock", response_model=LockGet)
def teacher_unlock(lock_id: str, payload: UnlockRequest, permissions: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):

    return UnlockService(db).teacher_unlock(lock_id, permissions.user_id, payload.reason, payload.notes)


@unlock_router.post("/locks/{lock_id}/dean-unlock", response_model=LockGet)
def dean_unlock(lock_id: str, payload: UnlockRequest, permissions: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):

    return UnlockService(db).dean_unlock(lock_id, permissions.user_id, payload.reason, payload.notes)
