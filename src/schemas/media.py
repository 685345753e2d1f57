"""Media upload Pydantic schemas."""

from pydantic import BaseModel, Field


class MediaUploadResponse(BaseModel):
    """A stored image."""

    url: str = Field(description="Public URL of the stored object")
    path: str = Field(description="Object path inside the bucket")
    size: int = Field(description="Stored size in bytes")


class MediaUploadManyResponse(BaseModel):
    """Several stored images, in upload order."""

    files: list[MediaUploadResponse]


class MediaDeleteRequest(BaseModel):
    """Request body for DELETE /media."""

    url: str = Field(..., min_length=1, description="Public URL returned by an upload")
