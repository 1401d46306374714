from __future__ import annotations

import hashlib
from dataclasses import dataclass

from supabase import Client, create_client

from src.infrastructure.config import Settings


@dataclass(slots=True)
class UserInfo:
    id: str
    email: str | None


class SupabaseAuthAdapter:
    """Small wrapper to validate Supabase access tokens.

    When Supabase is disabled, any non-empty token maps to a stable fake user.
    """

    def __init__(self, client: Client | None) -> None:
        self._client = client

    def validate_token(self, token: str) -> UserInfo:
        if not token:
            raise ValueError("Missing access token")
        if self._client is None:
            digest = hashlib.sha256(token.encode("utf-8")).hexdigest()[:10]
            return UserInfo(id=f"fake-{digest}", email=None)
        # Real validation via Supabase Auth API
        try:  # pragma: no cover - network path
            res = self._client.auth.get_user(token)
            user = res.user if res else None
        except Exception as exc:  # pragma: no cover - network path
            raise ValueError(f"Invalid access token: {exc}") from exc
        if not user:  # pragma: no cover - network path
            raise ValueError("Invalid access token")
        return UserInfo(id=user.id, email=user.email)  # pragma: no cover - network path


def create_supabase_client(settings: Settings) -> Client | None:
    """Build the Supabase client, or None when running without Supabase."""
    if settings.supabase_disabled or not settings.supabase_url or not settings.supabase_key:
        return None
    return create_client(settings.supabase_url, settings.supabase_key)
