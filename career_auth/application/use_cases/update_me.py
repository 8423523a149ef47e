from __future__ import annotations

from career_auth.application.dto.users import MeOutput, UpdateMeInput
from career_auth.application.ports.auth_port import AuthPort
from career_auth.domain.exceptions import InvalidProfileUpdateError, UserNotFoundError

from .auth_common import utcnow
from .get_me import GetMeUseCase


class UpdateMeUseCase:
    def __init__(self, *, auth_port: AuthPort):
        self._auth_port = auth_port

    def execute(self, command: UpdateMeInput) -> MeOutput:
        if command.name is None:
            raise InvalidProfileUpdateError("Nothing to update")
        name = command.name.strip()
        if not name:
            raise InvalidProfileUpdateError("Name cannot be empty")

        user = self._auth_port.update_user_name(user_id=command.user_id, name=name, updated_at=utcnow())
        if user is None:
            raise UserNotFoundError("Unauthorized")
        return GetMeUseCase().execute(user=user)
