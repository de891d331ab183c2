"""Account deletion router: initiate and confirm"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.models.account import AccountType
from app.schemas.common import ErrorResponse
from app.schemas.deletion import (
    ConfirmDeletionRequest,
    ConfirmDeletionResponse,
    InitiateDeletionRequest,
    InitiateDeletionResponse,
)
from app.services.deletion import DeletionAuthorizationService, deletion_service

router = APIRouter(tags=["Account Deletion"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    410: {"model": ErrorResponse},
    423: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
}


def get_deletion_service() -> DeletionAuthorizationService:
    return deletion_service


def get_client_id(request: Request) -> str:
    """Caller identifier set by RequestContextMiddleware, else the peer address."""
    client_id = getattr(request.state, "client_id", None)
    if client_id:
        return client_id
    return request.client.host if request.client else "unknown"


@router.post(
    "/{account_type}/initiate-deletion",
    response_model=InitiateDeletionResponse,
    responses=ERROR_RESPONSES,
)
async def initiate_deletion(
    account_type: AccountType,
    body: InitiateDeletionRequest,
    client_id: str = Depends(get_client_id),
    db: AsyncSession = Depends(get_db),
    service: DeletionAuthorizationService = Depends(get_deletion_service),
):
    """
    Start account deletion.

    Always answers with a pending token and a redirect URL carrying it, even
    when no account matches the email. Verification codes (if any) are sent
    in the background.
    """
    result = await service.initiate(db, body.email, account_type.value, client_id)
    return InitiateDeletionResponse(
        pending_token=result.pending_token,
        account_type=result.account_type,
        message=result.message,
        redirect_url=result.redirect_url,
    )


@router.post(
    "/{account_type}/confirm-deletion",
    response_model=ConfirmDeletionResponse,
    responses=ERROR_RESPONSES,
)
async def confirm_deletion(
    account_type: AccountType,
    body: ConfirmDeletionRequest,
    db: AsyncSession = Depends(get_db),
    service: DeletionAuthorizationService = Depends(get_deletion_service),
):
    """
    Confirm account deletion with a TOTP code or the email and SMS codes.

    On success the token is consumed and the account is queued for deletion.
    """
    receipt = await service.confirm(db, body.pending_token, account_type.value, body.to_proof())
    return ConfirmDeletionResponse(message=receipt.message)
