from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from src.domain.entities.image import ImageEntity, ImageListItem


class ImageListItemResponse(BaseModel):
    """One entry of an image listing."""
    id: str = Field(..., description="Unique identifier of the image", examples=["img_1"])
    original_url: str = Field(..., description="Public path of the uploaded file", examples=["/uploads/1718000000000-k3j9x0a1b.png"])
    bg_removed_url: str | None = Field(None, description="Public path of the background-removed variant, once processed")

    @classmethod
    def from_entity(cls, item: ImageListItem) -> ImageListItemResponse:
        return cls(id=item.id, original_url=item.original_url, bg_removed_url=item.bg_removed_url)


class ListImagesResponse(BaseModel):
    """Response model for listing the caller's images."""
    user_id: str = Field(..., description="ID of the user the images belong to")
    images: list[ImageListItemResponse] = Field(..., description="All images owned by the user, oldest first")


class ImageDetail(BaseModel):
    """Full record of a single image."""
    id: str = Field(..., description="Unique identifier of the image", examples=["img_1"])
    user_id: str = Field(..., description="ID of the user who owns this image")
    original_url: str = Field(..., description="Public path of the uploaded file")
    bg_removed_url: str | None = Field(None, description="Public path of the background-removed variant")
    created_at: datetime = Field(..., description="ISO timestamp when the image was uploaded")

    @classmethod
    def from_entity(cls, entity: ImageEntity) -> ImageDetail:
        return cls(
            id=entity.id,
            user_id=entity.user_id,
            original_url=entity.original_url,
            bg_removed_url=entity.bg_removed_url,
            created_at=entity.created_at,
        )


class UploadFormResponse(BaseModel):
    """What the upload form must send."""
    field_name: str = Field(..., description="Multipart field carrying the file", examples=["image"])
    allowed_extensions: list[str] = Field(..., description="Accepted file extensions (case-insensitive)")
    allowed_content_types: list[str] = Field(..., description="Accepted declared content types")


class CreateImageResponse(BaseModel):
    """Response for a successful upload and processing run."""
    success: bool = Field(True, description="Always true on success")
    image_id: str = Field(..., description="ID of the created image")
    original_url: str = Field(..., description="Public path of the uploaded file")
    bg_removed_url: str = Field(..., description="Public path of the background-removed variant")


class ActionSuccessResponse(BaseModel):
    """Acknowledgement for a delete submitted through the upload form."""
    success: bool = Field(True, description="Always true on success")


class ActionErrorResponse(BaseModel):
    """Form-level error, keyed by the field it concerns."""
    errors: dict[str, str] = Field(..., description="Error messages keyed by form field", examples=[{"image": "A valid image file is required"}])


class DeleteImageResponse(BaseModel):
    """Response model for image deletion."""
    ok: bool = Field(True, description="Deletion succeeded (also when nothing matched)")
    deleted: int = Field(..., description="Number of records removed (0 or 1)", ge=0, le=1)
