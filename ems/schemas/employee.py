from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator

from ems.core.permissions import Role


class EmployeeIn(BaseModel):
    """Body for both create and update: every required field is re-validated."""

    name: str
    email: EmailStr
    role: Role
    department_id: str
    joining_date: date
    user_id: Optional[str] = None

    @field_validator("name", "department_id")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Field is required.")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("user_id", mode="before")
    @classmethod
    def empty_user_id_means_unlinked(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class EmployeeOut(BaseModel):
    id: str
    name: str
    email: str
    role: Role
    department_id: str
    department_name: Optional[str] = None
    joining_date: date
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
