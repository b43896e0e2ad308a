from pydantic import BaseModel, BeforeValidator, EmailStr, Field, field_validator
from typing import Annotated, Literal, Optional

from ems.core.permissions import Role
from ems.core.security import MAX_PASSWORD_BYTES, password_too_long

MIN_PASSWORD_LENGTH = 1


def normalize_email(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


NormalizedEmail = Annotated[EmailStr, BeforeValidator(normalize_email)]
LoginEmail = Annotated[str, BeforeValidator(normalize_email)]


class NewCredentials(BaseModel):
    email: NormalizedEmail
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if password_too_long(value):
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        return value


class SignupRequest(NewCredentials):
    # Any "role" in the body is ignored: signup always creates an employee
    pass


class CreateUserRequest(NewCredentials):
    role: Literal["HR", "admin"]


class LoginRequest(BaseModel):
    # Plain str: an unknown or malformed email is just a failed login (401)
    email: LoginEmail
    password: str


class UserOut(BaseModel):
    id: str
    email: str
    role: Role


class AuthResponse(BaseModel):
    token: str
    user: UserOut


class CreateUserResponse(BaseModel):
    user: UserOut


class CurrentUser(BaseModel):
    id: str
    email: Optional[str] = None
    role: Role
