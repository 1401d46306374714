from __future__ import annotations

from dataclasses import dataclass

from src.infrastructure.database.repositories.image_repository import ImageRepository


@dataclass
class DeleteImageUseCase:
    """Delete an image owned by the caller.

    Deleting an id that is missing, or owned by someone else, removes nothing
    and is not an error.
    """

    image_repo: ImageRepository

    def execute(self, user_id: str, image_id: str) -> int:
        return self.image_repo.delete(user_id, image_id)
