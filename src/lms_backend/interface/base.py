from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

class BaseEntityList(BaseModel):
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Update timestamp")
