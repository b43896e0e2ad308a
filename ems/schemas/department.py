from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class DepartmentIn(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Department name is required.")
        return value


class DepartmentOut(BaseModel):
    id: str
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
