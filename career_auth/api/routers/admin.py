from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, Query

from career_auth.api.deps import (
    get_purge_revoked_sessions_use_case,
    get_revoke_user_sessions_use_case,
    require_roles,
)
from career_auth.api.errors import api_error
from career_auth.api.schemas.users import PurgedSessionsResponse, RevokedSessionsResponse
from career_auth.application.use_cases.purge_revoked_sessions import PurgeRevokedSessionsUseCase
from career_auth.application.use_cases.revoke_user_sessions import RevokeUserSessionsUseCase
from career_auth.domain.exceptions import UserNotFoundError
from career_auth.domain.services.account_policy import ROLE_ADMIN


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_roles(ROLE_ADMIN))])


@router.post("/users/{user_id}/revoke-sessions", response_model=RevokedSessionsResponse)
def revoke_user_sessions(
    user_id: str,
    use_case: RevokeUserSessionsUseCase = Depends(get_revoke_user_sessions_use_case),
):
    try:
        revoked = use_case.execute(user_id=user_id)
    except UserNotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    return RevokedSessionsResponse(revoked=revoked)


@router.post("/sessions/purge", response_model=PurgedSessionsResponse)
def purge_revoked_sessions(
    older_than_days: int = Query(default=30, ge=0, alias="olderThanDays"),
    use_case: PurgeRevokedSessionsUseCase = Depends(get_purge_revoked_sessions_use_case),
):
    deleted = use_case.execute(older_than=timedelta(days=older_than_days))
    return PurgedSessionsResponse(deleted=deleted)
