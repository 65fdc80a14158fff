"""Pydantic schemas for JWT tokens."""

from __future__ import annotations

from pydantic import BaseModel, Field


class TokenClaims(BaseModel):
    """Identity carried by an access token and attached to each request."""

    user_id: int = Field(alias="sub")
    staff_id: int
    username: str
    full_name: str
    staff_role: str
    roles: list[str] = Field(default_factory=list)
    session_id: str = Field(alias="sid")

    model_config = {"populate_by_name": True}

    def to_jwt(self) -> dict:
        payload = self.model_dump(by_alias=True)
        payload["sub"] = str(self.user_id)
        return payload
