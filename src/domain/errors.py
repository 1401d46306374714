"""Error taxonomy for the image lifecycle."""
from __future__ import annotations


class ImageError(Exception):
    """Base class for image lifecycle errors."""


class UploadValidationError(ImageError):
    """The submitted form or file was rejected by validation."""


class UploadFailedError(ImageError):
    """Writing an accepted upload to disk failed."""


class OwnerNotFoundError(ImageError):
    """An image was created for a user that has no profile."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"Owner {user_id!r} does not exist")
        self.user_id = user_id
