import yaml
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator

class SchoolSeed(BaseModel):
    name: str
    code: str

class DepartmentSeed(BaseModel):
    name: str
    code: str
    school: str

class UserSeed(BaseModel):
    name: str
    email: str
    role: Optional[str] = None
    roles: Optional[List[str]] = None
    primary_role: Optional[str] = None
    school: Optional[str] = None
    department: Optional[str] = None
    is_active: bool = True

    @model_validator(mode='after')
    def require_role(self):
        if not self.role and not self.roles:
            raise ValueError(f"user {self.email} needs role or roles")
        return self

class CourseSeed(BaseModel):
    title: str
    code: str
    school: str
    department: str
    coordinators: List[str] = Field(default_factory=list)

class SectionSeed(BaseModel):
    name: str
    school: str
    department: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=0)
    teacher: Optional[str] = None
    academic_year: Optional[str] = None
    semester: Optional[str] = None
    courses: List[str] = Field(default_factory=list)
    students: List[str] = Field(default_factory=list)

class SeedDocument(BaseModel):
    """Organization fixture loaded by ``lms seed``. Cross references use codes and emails."""
    schools: List[SchoolSeed] = Field(default_factory=list)
    departments: List[DepartmentSeed] = Field(default_factory=list)
    users: List[UserSeed] = Field(default_factory=list)
    courses: List[CourseSeed] = Field(default_factory=list)
    sections: List[SectionSeed] = Field(default_factory=list)

class SeedFactory:

  @staticmethod
  def read_seed_from_string(yamlstring: str) -> SeedDocument:
    return SeedDocument(**(yaml.safe_load(yamlstring) or {}))

  @staticmethod
  def read_seed_from_file(filename: str) -> SeedDocument:
    with open(filename, "r") as file:
      return SeedDocument(**(yaml.safe_load(file) or {}))
