from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from career_auth.api.cookies import clear_refresh_cookie
from career_auth.api.deps import (
    get_app_settings,
    get_change_password_use_case,
    get_current_user,
    get_deactivate_account_use_case,
    get_delete_account_use_case,
    get_get_me_use_case,
    get_update_me_use_case,
    get_verified_user,
)
from career_auth.api.errors import api_error
from career_auth.api.schemas.auth import OkResponse
from career_auth.api.schemas.users import ChangePasswordRequest, MeResponse, UpdateMeRequest
from career_auth.application.dto.users import ChangePasswordInput, MeOutput, UpdateMeInput
from career_auth.application.use_cases.change_password import ChangePasswordUseCase
from career_auth.application.use_cases.deactivate_account import DeactivateAccountUseCase
from career_auth.application.use_cases.delete_account import DeleteAccountUseCase
from career_auth.application.use_cases.get_me import GetMeUseCase
from career_auth.application.use_cases.update_me import UpdateMeUseCase
from career_auth.domain.entities.user import User
from career_auth.domain.exceptions import (
    InvalidCredentialsError,
    InvalidProfileUpdateError,
    PasswordPolicyError,
    PasswordReuseError,
    UserNotFoundError,
)
from career_auth.shared.config import Settings


router = APIRouter(prefix="/users", tags=["users"])


def _to_me_response(output: MeOutput) -> MeResponse:
    return MeResponse(
        id=output.id,
        name=output.name,
        email=output.email,
        email_verified=output.email_verified_at is not None,
        email_verified_at=output.email_verified_at,
        is_active=output.is_active,
        is_admin=output.is_admin,
        has_password=output.has_password,
        ai_free_uses_used=output.ai_free_uses_used,
        created_at=output.created_at,
        updated_at=output.updated_at,
    )


@router.get("/me", response_model=MeResponse)
def get_me(
    current_user: User = Depends(get_current_user),
    use_case: GetMeUseCase = Depends(get_get_me_use_case),
):
    return _to_me_response(use_case.execute(user=current_user))


@router.patch("/me", response_model=MeResponse)
def update_me(
    req: UpdateMeRequest,
    current_user: User = Depends(get_verified_user),
    use_case: UpdateMeUseCase = Depends(get_update_me_use_case),
):
    try:
        output = use_case.execute(UpdateMeInput(user_id=current_user.id, name=req.name))
    except InvalidProfileUpdateError as exc:
        raise api_error(400, str(exc)) from exc
    except UserNotFoundError as exc:
        raise api_error(401, "Unauthorized", "UNAUTHORIZED") from exc
    return _to_me_response(output)


@router.post("/change-password", response_model=OkResponse)
def change_password(
    req: ChangePasswordRequest,
    response: Response,
    current_user: User = Depends(get_verified_user),
    settings: Settings = Depends(get_app_settings),
    use_case: ChangePasswordUseCase = Depends(get_change_password_use_case),
):
    try:
        use_case.execute(
            ChangePasswordInput(
                user_id=current_user.id,
                old_password=req.old_password,
                new_password=req.new_password,
            )
        )
    except InvalidCredentialsError as exc:
        raise api_error(401, "Invalid credentials") from exc
    except (PasswordPolicyError, PasswordReuseError) as exc:
        raise api_error(400, str(exc)) from exc
    except UserNotFoundError as exc:
        raise api_error(401, "Unauthorized", "UNAUTHORIZED") from exc

    clear_refresh_cookie(response, production=settings.is_production)
    return OkResponse(ok=True)


@router.delete("/deactivate", response_model=OkResponse)
def deactivate_account(
    response: Response,
    current_user: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
    use_case: DeactivateAccountUseCase = Depends(get_deactivate_account_use_case),
):
    use_case.execute(user_id=current_user.id)
    clear_refresh_cookie(response, production=settings.is_production)
    return OkResponse(ok=True)


@router.delete("/delete", response_model=OkResponse)
def delete_account(
    response: Response,
    current_user: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
    use_case: DeleteAccountUseCase = Depends(get_delete_account_use_case),
):
    try:
        use_case.execute(user_id=current_user.id)
    except UserNotFoundError as exc:
        raise api_error(401, "Unauthorized", "UNAUTHORIZED") from exc
    clear_refresh_cookie(response, production=settings.is_production)
    return OkResponse(ok=True)
