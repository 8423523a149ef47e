from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class MeOutput:
    id: str
    name: str
    email: str
    email_verified_at: datetime | None
    is_active: bool
    is_admin: bool
    has_password: bool
    ai_free_uses_used: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UpdateMeInput:
    user_id: str
    name: str | None


@dataclass(frozen=True)
class ChangePasswordInput:
    user_id: str
    old_password: str
    new_password: str
