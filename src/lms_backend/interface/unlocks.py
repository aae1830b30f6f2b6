from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

class LockCreate(BaseModel):
    student_id: str
    target_type: Literal["quiz", "video"]
    target_id: str
    reason: Literal["BELOW_PASSING_SCORE", "SECURITY_VIOLATION", "TIME_EXCEEDED", "MANUAL_LOCK"]
    course_id: Optional[str] = None

class UnlockRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=1024)
    notes: Optional[str] = None

class UnlockEventGet(BaseModel):
    id: str
    actor_id: Optional[str] = None
    actor_level: str
    reason: str
    notes: Optional[str] = None
    unlocked_at: datetime

    model_config = ConfigDict(from_attributes=True)

class LockGet(BaseModel):
    id: str
    student_id: str
    target_type: str
    target_id: str
    course_id: Optional[str] = None
    is_locked: bool
    lock_reason: str
    locked_at: datetime
    teacher_unlock_count: int
    dean_unlock_count: int
    last_teacher_unlock_at: Optional[datetime] = None
    last_dean_unlock_at: Optional[datetime] = None
    remaining_teacher_unlocks: int
    authorization_level: str
    events: List[UnlockEventGet] = []

    model_config = ConfigDict(from_attributes=True)
