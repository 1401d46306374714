from __future__ import annotations

import logging
import os
import secrets
import shutil
import string
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from src.domain.errors import UploadFailedError, UploadValidationError

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "image"
ALLOWED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp")
ALLOWED_CONTENT_TYPES = ("image/png", "image/jpeg", "image/gif", "image/webp")

CHUNK_SIZE = 64 * 1024
_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase


@dataclass
class LocalUploadStorage:
    """Writes accepted image uploads into a local directory.

    Files are served back to clients under ``public_prefix``, so the value
    returned by :meth:`save` is directly usable as an ``<img src>``.
    """

    upload_dir: Path
    public_prefix: str = "/uploads"
    field_name: str = UPLOAD_FIELD

    def validate(self, name: str, content_type: str | None, filename: str | None) -> str:
        """Check an upload against the whitelist and return its extension.

        Raises:
            UploadValidationError: If the field, filename, extension or
                content type is not acceptable.
        """
        if name != self.field_name:
            raise UploadValidationError(f"Unexpected upload field {name!r}")
        if not filename:
            raise UploadValidationError("Missing filename")
        ext = os.path.splitext(filename)[1].lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise UploadValidationError(f"File extension {ext or '(none)'} is not allowed")
        if (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
            raise UploadValidationError(f"Content type {content_type or '(none)'} is not allowed")
        return ext

    def save(
        self,
        name: str,
        content_type: str | None,
        filename: str | None,
        stream: BinaryIO,
    ) -> str | None:
        """Store one multipart file field.

        Returns the public path of the stored file, or None when the upload
        is rejected by validation. I/O errors raise UploadFailedError and leave
        no partial file behind.
        """
        try:
            ext = self.validate(name, content_type, filename)
        except UploadValidationError as exc:
            logger.info("Rejected upload %r: %s", filename, exc)
            return None

        unique_name = self._unique_name(ext)
        target = self.upload_dir / unique_name
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("Cannot create upload directory %s: %s", self.upload_dir, exc)
            raise UploadFailedError(f"Failed to store upload: {exc}") from exc
        try:
            with target.open("wb") as out:
                shutil.copyfileobj(stream, out, CHUNK_SIZE)
        except OSError as exc:
            logger.error("Error uploading file %r: %s", filename, exc)
            target.unlink(missing_ok=True)
            raise UploadFailedError(f"Failed to store upload: {exc}") from exc

        logger.debug("Stored upload %r as %s", filename, target)
        return self.public_url(unique_name)

    def public_url(self, file_name: str) -> str:
        return f"{self.public_prefix}/{file_name}"

    def is_public_path(self, value: object) -> bool:
        return isinstance(value, str) and value.startswith(f"{self.public_prefix}/")

    def local_path(self, public_url: str) -> Path:
        """Map a public path back to the file on disk."""
        return self.upload_dir / public_url.rsplit("/", 1)[-1]

    def discard(self, public_url: str) -> None:
        """Remove a stored upload that ended up not being referenced."""
        try:
            self.local_path(public_url).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove unused upload %s: %s", public_url, exc)
        else:
            logger.debug("Discarded unused upload %s", public_url)

    @staticmethod
    def _unique_name(ext: str) -> str:
        millis = int(time.time() * 1000)
        suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(9))
        return f"{millis}-{suffix}{ext}"
