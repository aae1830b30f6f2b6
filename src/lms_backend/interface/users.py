from typing import List, Optional
from pydantic import BaseModel, ConfigDict

class UserList(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    role: Optional[str] = None
    roles: Optional[List[str]] = None
    department_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
