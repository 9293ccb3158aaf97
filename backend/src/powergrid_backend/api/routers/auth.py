"""Authentication endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from powergrid_backend.api.dependencies import get_auth_service
from powergrid_backend.api.models import AuthTokenResponse, GuestLoginRequest
from powergrid_backend.api.services import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/guest",
    response_model=AuthTokenResponse,
    status_code=status.HTTP_201_CREATED,
)
def guest_login(
    payload: GuestLoginRequest,
    auth_service: AuthService = Depends(get_auth_service),  # noqa: B008
) -> AuthTokenResponse:
    """Issue a new player identity and its access token."""

    player_id, token = auth_service.issue_guest_token(payload.name)
    return AuthTokenResponse(access_token=token, player_id=player_id)
