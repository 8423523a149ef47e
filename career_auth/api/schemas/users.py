from __future__ import annotations

from datetime import datetime

from pydantic import Field

from .base import ApiModel


class UpdateMeRequest(ApiModel):
    name: str | None = Field(default=None, max_length=100)


class ChangePasswordRequest(ApiModel):
    old_password: str = Field(..., min_length=1, max_length=256)
    new_password: str = Field(..., min_length=1, max_length=256)


class MeResponse(ApiModel):
    id: str
    name: str
    email: str
    email_verified: bool
    email_verified_at: datetime | None
    is_active: bool
    is_admin: bool
    has_password: bool
    ai_free_uses_used: int
    created_at: datetime
    updated_at: datetime


class RevokedSessionsResponse(ApiModel):
    revoked: int


class PurgedSessionsResponse(ApiModel):
    deleted: int
