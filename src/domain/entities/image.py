from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ImageEntity:
    id: str
    user_id: str  # owner, set once at creation
    original_url: str  # public path of the uploaded file, e.g. /uploads/{name}.png
    created_at: datetime
    bg_removed_url: str | None = None  # set once background removal finishes

    @property
    def is_processed(self) -> bool:
        return self.bg_removed_url is not None

    def to_list_item(self) -> ImageListItem:
        return ImageListItem(
            id=self.id,
            original_url=self.original_url,
            bg_removed_url=self.bg_removed_url,
        )


@dataclass(frozen=True)
class ImageListItem:
    """Lightweight projection used by listings."""

    id: str
    original_url: str
    bg_removed_url: str | None = None
