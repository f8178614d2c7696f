import logging

from fastapi import APIRouter, Depends

from ..application.services.account_service import AccountService
from ..exceptions import create_success_response
from ..schemas.account.account import RegisterRequest, RegisterResponse, UserResponse, DeletionReportResponse
from ..schemas.settings.settings import AppSettings, UpdateSettingsRequest
from ..utils import create_jwt_token
from .deps import get_current_user, get_account_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["User"])


@router.post("/register")
def register(
    request: RegisterRequest,
    account_service: AccountService = Depends(get_account_service),
):
    user = account_service.register(request.email, request.name)
    token = create_jwt_token({"sub": user.id})
    response = RegisterResponse(
        user=UserResponse(id=user.id, email=user.email, name=user.name, created_at=user.created_at),
        access_token=token,
    )
    return create_success_response(response.model_dump(mode="json"))


@router.get("/me")
def get_me(
    current_user: str = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
):
    user = account_service.get(current_user)
    return create_success_response(
        UserResponse(id=user.id, email=user.email, name=user.name, created_at=user.created_at).model_dump(mode="json")
    )


@router.get("/settings")
def get_settings(
    current_user: str = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
):
    values = account_service.get_settings(current_user)
    return create_success_response(AppSettings(**values).model_dump())


@router.put("/settings")
def update_settings(
    request: UpdateSettingsRequest,
    current_user: str = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
):
    values = account_service.update_settings(current_user, request.model_dump(exclude_none=True))
    return create_success_response(AppSettings(**values).model_dump())


@router.delete("/delete-account")
def delete_account(
    current_user: str = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
):
    logger.info(f"Account deletion requested by user {current_user}")
    report = account_service.delete_account(current_user)
    return create_success_response({
        "message": "Account deleted successfully",
        "deleted": DeletionReportResponse(**report.to_dict()).model_dump(),
    })
