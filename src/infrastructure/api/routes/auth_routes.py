from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from src.application.dtos.auth_dto import UserProfileResponse, ValidateTokenResponse
from src.infrastructure.api.dependencies import get_current_user, get_profile_repo
from src.infrastructure.database.repositories.profile_repository import ProfileRepository

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
    },
)


@router.post(
    "/validate",
    response_model=ValidateTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Validate Authentication Token",
    description="""
    Validate the provided bearer token and ensure the user profile exists.

    A profile is required before the user can own images.
    """,
)
def validate_token(
    user=Depends(get_current_user),
    profiles: ProfileRepository = Depends(get_profile_repo),
):
    """Validate token and ensure user profile exists."""
    prof = profiles.upsert(user.id, user.email)
    return ValidateTokenResponse(user_id=prof.id, email=prof.email)


@router.get(
    "/me",
    response_model=UserProfileResponse,
    summary="Get Current User Profile",
)
def get_me(
    user=Depends(get_current_user),
    profiles: ProfileRepository = Depends(get_profile_repo),
):
    prof = profiles.get(user.id)
    if prof is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return UserProfileResponse(id=prof.id, email=prof.email, created_at=prof.created_at)
