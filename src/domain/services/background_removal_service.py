from __future__ import annotations

import asyncio
import posixpath


class BackgroundRemovalService:
    """Placeholder background removal.

    No pixels are touched: after a fixed delay the processed variant points
    at the same stored file. The delay is awaited, so other requests keep
    being served while it runs.
    """

    def __init__(self, delay_seconds: float = 2.0, public_prefix: str = "/uploads") -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self.delay_seconds = delay_seconds
        self.public_prefix = public_prefix.rstrip("/")

    async def remove_background(self, original_url: str) -> str:
        """Return the public URL of the background-removed variant."""
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        return f"{self.public_prefix}/{posixpath.basename(original_url)}"
