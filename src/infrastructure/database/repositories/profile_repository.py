from __future__ import annotations

from datetime import UTC, datetime

from supabase import Client

from src.domain.entities.profile import ProfileEntity
from src.infrastructure.database.memory_store import MemoryStore
from src.infrastructure.database.postgres_client import PostgresClient


class ProfileRepository:
    def __init__(
        self,
        client: Client | None,
        *,
        store: MemoryStore | None = None,
        pg_client: PostgresClient | None = None,
    ) -> None:
        self.client = client
        self.pg_client = pg_client
        self.store = store
        if pg_client is None and client is None and store is None:
            raise ValueError("ProfileRepository needs a database client or an in-memory store")

    def _row_to_entity(self, row: dict) -> ProfileEntity:
        """Convert database row to ProfileEntity."""
        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)

        return ProfileEntity(
            id=str(row["id"]),
            email=row.get("email"),
            created_at=created_at,
        )

    def upsert(self, user_id: str, email: str | None) -> ProfileEntity:
        # PostgreSQL mode
        if self.pg_client is not None:
            try:
                query = """
                    INSERT INTO profiles (id, email, created_at)
                    VALUES (%s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (id) DO UPDATE SET email = EXCLUDED.email
                    RETURNING *
                """
                row = self.pg_client.execute_insert(query, (user_id, email))
                return self._row_to_entity(row)
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL upsert profile failed: {exc}") from exc

        # In-memory mode
        if self.client is None:
            with self.store.lock:
                current = self.store.profiles.get(user_id)
                entity = ProfileEntity(
                    id=user_id,
                    email=email,
                    created_at=current.created_at if current else datetime.now(UTC),
                )
                self.store.profiles[user_id] = entity
            return entity

        # Supabase mode
        try:  # pragma: no cover - network
            data = {"id": user_id, "email": email}
            self.client.table("profiles").upsert(data, on_conflict="id").execute()
            res = self.client.table("profiles").select("*").eq("id", user_id).single().execute()
            return self._row_to_entity(res.data)
        except Exception as exc:  # pragma: no cover - network
            raise RuntimeError(f"DB upsert profile failed: {exc}") from exc

    def get(self, user_id: str) -> ProfileEntity | None:
        # PostgreSQL mode
        if self.pg_client is not None:
            row = self.pg_client.execute_one("SELECT * FROM profiles WHERE id = %s", (user_id,))
            return self._row_to_entity(row) if row else None

        # In-memory mode
        if self.client is None:
            with self.store.lock:
                return self.store.profiles.get(user_id)

        # Supabase mode
        try:  # pragma: no cover - network
            res = self.client.table("profiles").select("*").eq("id", user_id).limit(1).execute()
            rows = res.data or []
            return self._row_to_entity(rows[0]) if rows else None
        except Exception as exc:  # pragma: no cover - network
            raise RuntimeError(f"DB get profile failed: {exc}") from exc
