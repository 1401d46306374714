from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.domain.services.background_removal_service import BackgroundRemovalService
from src.infrastructure.database.repositories.image_repository import ImageRepository
from src.infrastructure.database.repositories.profile_repository import ProfileRepository
from src.infrastructure.database.supabase_client import SupabaseAuthAdapter, UserInfo
from src.infrastructure.storage.local_upload_storage import LocalUploadStorage

_bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_adapter(request: Request) -> SupabaseAuthAdapter:
    return SupabaseAuthAdapter(request.app.state.supabase)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(_bearer_scheme)] = None,
    auth: Annotated[SupabaseAuthAdapter, Depends(get_auth_adapter)] = None,
) -> UserInfo:
    if not credentials or not credentials.scheme or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    token = credentials.credentials
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    try:
        return auth.validate_token(token)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))


def get_image_repo(request: Request) -> ImageRepository:
    state = request.app.state
    return ImageRepository(state.supabase, store=state.store, pg_client=state.pg_client)


def get_profile_repo(request: Request) -> ProfileRepository:
    state = request.app.state
    return ProfileRepository(state.supabase, store=state.store, pg_client=state.pg_client)


def get_current_owner(
    user: Annotated[UserInfo, Depends(get_current_user)],
    profiles: Annotated[ProfileRepository, Depends(get_profile_repo)],
) -> UserInfo:
    """Authenticated user whose profile is guaranteed to exist, so it can own images."""
    profiles.upsert(user.id, user.email)
    return user


def get_upload_storage(request: Request) -> LocalUploadStorage:
    return request.app.state.uploads


def get_background_removal(request: Request) -> BackgroundRemovalService:
    return request.app.state.background_removal
