from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from src.domain.entities.image import ImageEntity
from src.domain.services.background_removal_service import BackgroundRemovalService
from src.infrastructure.database.repositories.image_repository import ImageRepository

logger = logging.getLogger(__name__)


@dataclass
class CreateImageUseCase:
    image_repo: ImageRepository
    background_removal: BackgroundRemovalService

    async def execute(self, user_id: str, original_url: str) -> ImageEntity:
        """
        Record an uploaded file and run background removal on it.

        The record is inserted first with no processed variant, then updated
        once processing finishes. The returned entity carries both URLs.
        """
        entity = self.image_repo.create(user_id=user_id, original_url=original_url)

        bg_removed_url = await self.background_removal.remove_background(entity.original_url)
        updated = self.image_repo.update_bg_removed_url(user_id, entity.id, bg_removed_url)
        if not updated:
            # deleted while processing; report what was computed anyway
            logger.info("Image %s vanished before its processed URL was saved", entity.id)
        return replace(entity, bg_removed_url=bg_removed_url)
