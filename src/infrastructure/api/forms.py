from __future__ import annotations

from dataclasses import dataclass, field

from fastapi import Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from src.infrastructure.storage.local_upload_storage import LocalUploadStorage


@dataclass
class UploadForm:
    """Parsed form values plus the public paths of every file written for it."""

    fields: dict[str, str | None] = field(default_factory=dict)
    stored: list[str] = field(default_factory=list)

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.fields.get(name, default)


def is_multipart(request: Request) -> bool:
    return "multipart/form-data" in request.headers.get("content-type", "")


async def parse_upload_form(request: Request, uploads: LocalUploadStorage) -> UploadForm:
    """Parse a multipart body, storing every file field through ``uploads``.

    File fields are replaced by the public path of the stored file, or None
    when the upload was rejected. A plain text value sent under the upload
    field name is dropped, so a stored path can only come from a real upload.
    For repeated names the first usable value wins.

    Files already written are removed again if parsing fails part way. Once
    parsing succeeds the caller owns ``stored`` and must discard what it
    does not use.
    """
    result = UploadForm()
    try:
        async with request.form() as form:
            for name, value in form.multi_items():
                if isinstance(value, UploadFile):
                    value = await run_in_threadpool(
                        uploads.save, name, value.content_type, value.filename, value.file
                    )
                    if value is not None:
                        result.stored.append(value)
                elif name == uploads.field_name:
                    value = None
                if result.fields.get(name) is None:
                    result.fields[name] = value
    except Exception:
        for path in result.stored:
            uploads.discard(path)
        raise
    return result
