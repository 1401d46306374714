from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from supabase import Client

from src.domain.entities.image import ImageEntity, ImageListItem
from src.domain.errors import OwnerNotFoundError
from src.infrastructure.database.memory_store import MemoryStore
from src.infrastructure.database.postgres_client import PostgresClient

logger = logging.getLogger(__name__)

# SQLSTATE for foreign_key_violation, reported by both psycopg2 and PostgREST
_FK_VIOLATION = "23503"

_LIST_COLUMNS = "id, original_url, bg_removed_url"


def _is_fk_violation(exc: Exception) -> bool:
    code = getattr(exc, "pgcode", None) or getattr(exc, "code", None)
    return code == _FK_VIOLATION


def _as_uuid(image_id: str) -> str | None:
    """Normalise an image id for the uuid column, or None if it cannot match."""
    try:
        return str(uuid.UUID(image_id))
    except (TypeError, ValueError, AttributeError):
        return None


class ImageRepository:
    """Owner-scoped access to image records.

    Every method takes the owner id first; no lookup is ever made by image id
    alone. The backend is picked from what is injected: a Postgres client,
    a Supabase client, or the in-memory store.
    """

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
            raise ValueError("ImageRepository needs a database client or an in-memory store")

    @property
    def _use_pg(self) -> bool:
        return self.pg_client is not None

    @property
    def _use_memory(self) -> bool:
        return self.pg_client is None and self.client is None

    def _row_to_entity(self, row: dict) -> ImageEntity:
        """Convert database row to ImageEntity."""
        # PostgreSQL returns datetime objects, Supabase returns ISO strings
        created_at = row["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)

        return ImageEntity(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            original_url=row["original_url"],
            bg_removed_url=row.get("bg_removed_url"),
            created_at=created_at,
        )

    @staticmethod
    def _row_to_list_item(row: dict) -> ImageListItem:
        return ImageListItem(
            id=str(row["id"]),
            original_url=row["original_url"],
            bg_removed_url=row.get("bg_removed_url"),
        )

    def create(self, user_id: str, original_url: str) -> ImageEntity:
        if not original_url:
            raise ValueError("original_url must not be empty")
        now = datetime.now(UTC)

        # PostgreSQL mode
        if self._use_pg:
            query = """
                INSERT INTO images (user_id, original_url, created_at)
                VALUES (%s, %s, %s)
                RETURNING *
            """
            try:
                row = self.pg_client.execute_insert(query, (user_id, original_url, now))
            except Exception as exc:
                if _is_fk_violation(exc):
                    raise OwnerNotFoundError(user_id) from exc
                raise RuntimeError(f"PostgreSQL insert image failed: {exc}") from exc
            entity = self._row_to_entity(row)

        # In-memory mode
        elif self._use_memory:
            with self.store.lock:
                if user_id not in self.store.profiles:
                    raise OwnerNotFoundError(user_id)
                entity = ImageEntity(
                    id=self.store.next_image_id(),
                    user_id=user_id,
                    original_url=original_url,
                    created_at=now,
                )
                self.store.images[entity.id] = entity

        # Supabase mode
        else:
            data = {
                "user_id": user_id,
                "original_url": original_url,
                "created_at": now.isoformat(),
            }
            try:
                res = self.client.table("images").insert(data).execute()
            except Exception as exc:
                if _is_fk_violation(exc):
                    raise OwnerNotFoundError(user_id) from exc
                raise RuntimeError(f"DB insert image failed: {exc}") from exc
            entity = self._row_to_entity(res.data[0])

        logger.info("Created image %s for user %s", entity.id, user_id)
        return entity

    def get(self, user_id: str, image_id: str) -> ImageEntity | None:
        # PostgreSQL mode
        if self._use_pg:
            query = "SELECT * FROM images WHERE id::text = %s AND user_id = %s"
            row = self.pg_client.execute_one(query, (image_id, user_id))
            return self._row_to_entity(row) if row else None

        # In-memory mode
        if self._use_memory:
            with self.store.lock:
                entity = self.store.images.get(image_id)
            if entity is None or entity.user_id != user_id:
                return None
            return entity

        # Supabase mode
        row_id = _as_uuid(image_id)
        if row_id is None:
            return None
        try:
            res = (
                self.client.table("images")
                .select("*")
                .eq("id", row_id)
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
            rows = res.data or []
            return self._row_to_entity(rows[0]) if rows else None
        except Exception as exc:
            raise RuntimeError(f"DB get image failed: {exc}") from exc

    def list_by_user(self, user_id: str) -> list[ImageListItem]:
        # PostgreSQL mode
        if self._use_pg:
            query = f"SELECT {_LIST_COLUMNS} FROM images WHERE user_id = %s ORDER BY created_at"
            rows = self.pg_client.execute_many(query, (user_id,))
            return [self._row_to_list_item(row) for row in rows]

        # In-memory mode
        if self._use_memory:
            with self.store.lock:
                owned = [img for img in self.store.images.values() if img.user_id == user_id]
            return [img.to_list_item() for img in owned]

        # Supabase mode
        try:
            res = (
                self.client.table("images")
                .select(_LIST_COLUMNS)
                .eq("user_id", user_id)
                .order("created_at")
                .execute()
            )
            return [self._row_to_list_item(row) for row in res.data or []]
        except Exception as exc:
            raise RuntimeError(f"DB list images failed: {exc}") from exc

    def update_bg_removed_url(self, user_id: str, image_id: str, bg_removed_url: str) -> int:
        """Set the processed variant URL. Returns the number of rows updated (0 or 1)."""
        # PostgreSQL mode
        if self._use_pg:
            query = "UPDATE images SET bg_removed_url = %s WHERE id::text = %s AND user_id = %s"
            return self.pg_client.execute_update(query, (bg_removed_url, image_id, user_id))

        # In-memory mode
        if self._use_memory:
            with self.store.lock:
                entity = self.store.images.get(image_id)
                if entity is None or entity.user_id != user_id:
                    return 0
                self.store.images[image_id] = ImageEntity(
                    id=entity.id,
                    user_id=entity.user_id,
                    original_url=entity.original_url,
                    created_at=entity.created_at,
                    bg_removed_url=bg_removed_url,
                )
            return 1

        # Supabase mode
        row_id = _as_uuid(image_id)
        if row_id is None:
            return 0
        try:
            res = (
                self.client.table("images")
                .update({"bg_removed_url": bg_removed_url})
                .eq("id", row_id)
                .eq("user_id", user_id)
                .execute()
            )
            return len(res.data or [])
        except Exception as exc:
            raise RuntimeError(f"DB update image failed: {exc}") from exc

    def delete(self, user_id: str, image_id: str) -> int:
        """Delete one owned image. Returns the number of rows removed (0 or 1)."""
        # PostgreSQL mode
        if self._use_pg:
            query = "DELETE FROM images WHERE id::text = %s AND user_id = %s"
            affected = self.pg_client.execute_update(query, (image_id, user_id))

        # In-memory mode
        elif self._use_memory:
            with self.store.lock:
                entity = self.store.images.get(image_id)
                if entity is not None and entity.user_id == user_id:
                    del self.store.images[image_id]
                    affected = 1
                else:
                    affected = 0

        # Supabase mode
        else:
            row_id = _as_uuid(image_id)
            affected = 0
            if row_id is not None:
                try:
                    res = (
                        self.client.table("images")
                        .delete()
                        .eq("id", row_id)
                        .eq("user_id", user_id)
                        .execute()
                    )
                    affected = len(res.data or [])
                except Exception as exc:
                    raise RuntimeError(f"DB delete image failed: {exc}") from exc

        if affected:
            logger.info("Deleted image %s for user %s", image_id, user_id)
        return affected
