from __future__ import annotations

import threading
from dataclasses import dataclass, field

from src.domain.entities.image import ImageEntity
from src.domain.entities.profile import ProfileEntity


@dataclass
class MemoryStore:
    """In-memory tables used when no database is configured.

    One instance is created per application and handed to the repositories,
    so separate apps (and tests) never share rows.
    """

    images: dict[str, ImageEntity] = field(default_factory=dict)
    profiles: dict[str, ProfileEntity] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _next_image_id: int = 0

    def next_image_id(self) -> str:
        # caller holds the lock
        self._next_image_id += 1
        return f"img_{self._next_image_id}"
