"""Media upload API routes. Admin only."""

from fastapi import APIRouter, File, Form, UploadFile, status

from src.api.deps import AdminUser, MediaServiceDep
from src.schemas.common import MessageResponse
from src.schemas.media import MediaDeleteRequest, MediaUploadManyResponse, MediaUploadResponse

router = APIRouter(prefix="/media", tags=["media"])


@router.post(
    "/upload",
    response_model=MediaUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload image",
    description="Stores one image in the public media bucket and returns its URL.",
)
async def upload_file(
    _admin: AdminUser,
    service: MediaServiceDep,
    file: UploadFile = File(..., description="Image file"),
    folder: str | None = Form(default=None, description="Target folder inside the bucket"),
) -> MediaUploadResponse:
    """Upload a single image.

    Raises:
        ValidationError: 400 if the file is not an image.
        UpstreamError: 502 if the object store rejects the upload.
    """
    content = await file.read()
    result = await service.upload(content, file.filename, file.content_type, folder)
    return MediaUploadResponse(**result)


@router.post(
    "/upload-multiple",
    response_model=MediaUploadManyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload several images",
)
async def upload_multiple_files(
    _admin: AdminUser,
    service: MediaServiceDep,
    files: list[UploadFile] = File(..., description="Image files"),
    folder: str | None = Form(default=None),
) -> MediaUploadManyResponse:
    """Upload several images in one request."""
    payload = [(await upload.read(), upload.filename, upload.content_type) for upload in files]
    results = await service.upload_many(payload, folder)
    return MediaUploadManyResponse(files=[MediaUploadResponse(**result) for result in results])


@router.delete(
    "",
    response_model=MessageResponse,
    summary="Delete image",
    description="Removes the object behind a public URL returned by an upload.",
)
async def delete_file(
    data: MediaDeleteRequest,
    _admin: AdminUser,
    service: MediaServiceDep,
) -> MessageResponse:
    """Delete an uploaded image.

    Raises:
        ValidationError: 400 if the URL is outside the media bucket.
    """
    path = await service.delete(data.url)
    return MessageResponse(message=f"Deleted {path}")
