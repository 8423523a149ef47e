from __future__ import annotations

from career_auth.application.dto.users import MeOutput
from career_auth.domain.entities.user import User


class GetMeUseCase:
    def execute(self, *, user: User) -> MeOutput:
        return MeOutput(
            id=user.id,
            name=user.name,
            email=user.email,
            email_verified_at=user.email_verified_at,
            is_active=user.is_active,
            is_admin=user.is_admin,
            has_password=bool(user.password_hash),
            ai_free_uses_used=user.ai_free_uses_used,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
