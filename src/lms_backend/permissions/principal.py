import base64
import binascii
import json
from typing import List, Optional
from pydantic import BaseModel, Field, ValidationError, model_validator
from lms_backend.api.exceptions import NotFoundException, UnauthorizedException
from lms_backend.permissions.roles import ADMIN, get_user_roles


class Principal(BaseModel):
    """Caller identity as issued by the upstream session provider"""

    is_admin: bool = False
    user_id: Optional[str] = None

    roles: List[str] = Field(default_factory=list)
    primary_role: Optional[str] = None

    @model_validator(mode='after')
    def normalize_roles(self):
        """Deduplicate roles and derive the admin flag"""
        seen = []
        for role in self.roles:
            if role and role not in seen:
                seen.append(role)
        self.roles = seen
        if ADMIN in self.roles:
            self.is_admin = True
        return self

    @property
    def role_set(self):
        return get_user_roles(self)

    def encode(self) -> bytes:
        """Encode principal for transmission"""
        return base64.b64encode(bytes(self.model_dump_json(), encoding="utf-8"))

    @classmethod
    def decode(cls, token: str | bytes) -> "Principal":
        """Inverse of `encode`; raises UnauthorizedException on malformed input"""
        try:
            raw = base64.b64decode(token, validate=True)
            return cls.model_validate(json.loads(raw))
        except (binascii.Error, ValueError, ValidationError):
            raise UnauthorizedException("Invalid bearer credential")

    def get_user_id_or_throw(self) -> str:
        if self.user_id is None:
            raise NotFoundException("User ID not found")
        return self.user_id
