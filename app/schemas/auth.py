"""Pydantic schemas for the authentication endpoints (camelCase on the wire)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

# Password fields cap at 72 chars: bcrypt ignores anything past 72 bytes.


class _CamelModel(BaseModel):
    model_config = _camel


# ── Requests ────────────────────────────────────────────────────────
class RegisterRequest(_CamelModel):
    staff_id: int
    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1, max_length=72)
    default_role_id: int | None = None

    @field_validator("username")
    @classmethod
    def _username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username must not be empty")
        return v


class LoginRequest(_CamelModel):
    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1, max_length=72)


class ChangePasswordRequest(_CamelModel):
    current_password: str = Field(min_length=1, max_length=72)
    new_password: str = Field(min_length=1, max_length=72)


class ForgotPasswordRequest(_CamelModel):
    username: str = Field(min_length=1, max_length=50)


class ResetPasswordRequest(_CamelModel):
    token: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=1, max_length=72)


# ── Responses ───────────────────────────────────────────────────────
class MessageResponse(_CamelModel):
    success: bool = True
    message: str


class RegisterResponse(MessageResponse):
    user_id: int


class LoginUser(_CamelModel):
    user_id: int
    staff_id: int
    username: str
    full_name: str
    staff_role: str
    roles: list[str]


class LoginResponse(MessageResponse):
    token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: LoginUser


class RoleRead(_CamelModel):
    id: int
    name: str


class DepartmentSummary(_CamelModel):
    id: int
    name: str
    description: str | None = None
    location: str | None = None


class UserProfile(_CamelModel):
    user_id: int
    staff_id: int
    username: str
    first_name: str
    last_name: str
    full_name: str
    email: str | None
    phone: str | None
    staff_role: str
    is_active: bool
    last_login: datetime | None
    roles: list[RoleRead]
    department: DepartmentSummary | None


class ProfileResponse(_CamelModel):
    success: bool = True
    user: UserProfile


class ResetDebugInfo(_CamelModel):
    reset_token: str
    email: str | None


class ForgotPasswordResponse(MessageResponse):
    # Only populated when PASSWORD_RESET_DEBUG_RESPONSE is enabled.
    debug: ResetDebugInfo | None = None
