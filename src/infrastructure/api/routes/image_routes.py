from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.application.dtos.common_dto import ErrorResponse
from src.application.dtos.image_dto import (
    ActionErrorResponse,
    ActionSuccessResponse,
    CreateImageResponse,
    DeleteImageResponse,
    ImageDetail,
    ImageListItemResponse,
    ListImagesResponse,
    UploadFormResponse,
)
from src.application.use_cases.create_image import CreateImageUseCase
from src.application.use_cases.delete_image import DeleteImageUseCase
from src.domain.services.background_removal_service import BackgroundRemovalService
from src.infrastructure.api.dependencies import (
    get_background_removal,
    get_current_owner,
    get_current_user,
    get_image_repo,
    get_upload_storage,
)
from src.infrastructure.api.forms import is_multipart, parse_upload_form
from src.infrastructure.database.repositories.image_repository import ImageRepository
from src.infrastructure.storage.local_upload_storage import (
    ALLOWED_CONTENT_TYPES,
    ALLOWED_EXTENSIONS,
    LocalUploadStorage,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/images",
    tags=["Images"],
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized - Invalid or missing authentication token"},
        404: {"model": ErrorResponse, "description": "Not Found - Image does not exist or user doesn't have access"},
        500: {"model": ErrorResponse, "description": "Internal Server Error"},
    },
)


def _form_error(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    body = ActionErrorResponse(errors={"image": message})
    return JSONResponse(status_code=status_code, content=body.model_dump())


@router.get(
    "",
    response_model=ListImagesResponse,
    summary="List User Images",
    description="""
    List every image owned by the authenticated user, oldest first.

    Each entry carries only the image ID and its two public URLs.
    **Authentication required**: Yes (Bearer token)
    """,
)
async def list_images(
    user=Depends(get_current_user),
    images: ImageRepository = Depends(get_image_repo),
):
    """Get the caller's images."""
    items = images.list_by_user(user.id)
    return ListImagesResponse(
        user_id=user.id,
        images=[ImageListItemResponse.from_entity(it) for it in items],
    )


@router.get(
    "/new",
    response_model=UploadFormResponse,
    summary="Upload Form Contract",
    description="Describe the multipart field and file types accepted by `POST /images/new`.",
)
async def new_image_form(
    user=Depends(get_current_user),
    uploads: LocalUploadStorage = Depends(get_upload_storage),
):
    return UploadFormResponse(
        field_name=uploads.field_name,
        allowed_extensions=list(ALLOWED_EXTENSIONS),
        allowed_content_types=list(ALLOWED_CONTENT_TYPES),
    )


@router.post(
    "/new",
    response_model=CreateImageResponse | ActionSuccessResponse,
    summary="Upload Image or Delete by Intent",
    description="""
    Multipart form endpoint used by the upload page.

    - `image` (file): PNG, JPEG, GIF or WEBP. The file is stored, a record is
      created, and background removal runs before the response is sent.
    - `intent=delete` with `imageId`: delete that image instead of uploading.

    **Authentication required**: Yes (Bearer token)
    """,
    responses={
        400: {"model": ActionErrorResponse, "description": "Bad Request - Missing or rejected file"},
        500: {"model": ActionErrorResponse, "description": "Upload or processing failed"},
    },
)
async def create_image(
    request: Request,
    user=Depends(get_current_owner),
    images: ImageRepository = Depends(get_image_repo),
    uploads: LocalUploadStorage = Depends(get_upload_storage),
    background_removal: BackgroundRemovalService = Depends(get_background_removal),
):
    """Store an uploaded image and process it, or delete one when asked to."""
    if not is_multipart(request):
        return _form_error("Form submission must be multipart/form-data")

    try:
        form = await parse_upload_form(request, uploads)
        deleting = form.get("intent") == "delete"
        original_url = None if deleting else form.get("image")
        for path in form.stored:
            if path != original_url:
                uploads.discard(path)

        if deleting:
            image_id = form.get("imageId")
            if not image_id:
                return _form_error("Image ID is required for deletion")
            DeleteImageUseCase(image_repo=images).execute(user.id, image_id)
            return ActionSuccessResponse()

        if not uploads.is_public_path(original_url):
            return _form_error("A valid image file is required")

        uc = CreateImageUseCase(image_repo=images, background_removal=background_removal)
        entity = await uc.execute(user_id=user.id, original_url=original_url)
    except StarletteHTTPException as exc:
        # malformed multipart bodies are reported by the form parser
        return _form_error(str(exc.detail), exc.status_code)
    except Exception:
        logger.exception("Error while processing upload for user %s", user.id)
        return _form_error(
            "An error occurred while processing the image",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return CreateImageResponse(
        image_id=entity.id,
        original_url=entity.original_url,
        bg_removed_url=entity.bg_removed_url,
    )


@router.get(
    "/{image_id}",
    response_model=ImageDetail,
    summary="Get Image",
    description="""
    Retrieve a single image owned by the authenticated user.

    Images owned by someone else are reported exactly like missing ones.
    **Authentication required**: Yes (Bearer token)
    """,
)
async def get_image(
    image_id: str,
    user=Depends(get_current_user),
    images: ImageRepository = Depends(get_image_repo),
):
    entity = images.get(user.id, image_id)
    if entity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return ImageDetail.from_entity(entity)


@router.post(
    "/{image_id}",
    status_code=status.HTTP_303_SEE_OTHER,
    summary="Delete Image and Return to Listing",
    description="Form-friendly delete: removes the image if the caller owns it, then redirects to `/images`.",
    response_class=RedirectResponse,
)
async def delete_image_and_redirect(
    image_id: str,
    user=Depends(get_current_user),
    images: ImageRepository = Depends(get_image_repo),
):
    DeleteImageUseCase(image_repo=images).execute(user.id, image_id)
    return RedirectResponse(url=router.prefix, status_code=status.HTTP_303_SEE_OTHER)


@router.delete(
    "/{image_id}",
    response_model=DeleteImageResponse,
    summary="Delete Image",
    description="""
    Delete an image owned by the authenticated user.

    Deleting an unknown or already deleted image succeeds with `deleted: 0`.
    The stored file is left in place.
    """,
)
async def delete_image(
    image_id: str,
    user=Depends(get_current_user),
    images: ImageRepository = Depends(get_image_repo),
):
    deleted = DeleteImageUseCase(image_repo=images).execute(user.id, image_id)
    return DeleteImageResponse(ok=True, deleted=deleted)
