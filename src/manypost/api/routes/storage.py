"""Direct-to-storage upload endpoints."""

from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from manypost.api.deps import CurrentUserDep, StorageDep
from manypost.domain.errors import NotFoundError
from manypost.services.storage import key_belongs_to

router = APIRouter(tags=["Storage"])


class UploadUrlRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(..., min_length=1, alias="fileName")
    content_type: str = Field(..., min_length=1, alias="contentType")


class UploadUrlResponse(BaseModel):
    signed_url: str = Field(serialization_alias="signedUrl")
    key: str
    public_url: str | None = Field(serialization_alias="publicUrl")
    expires_at: datetime = Field(serialization_alias="expiresAt")


class DeleteObjectRequest(BaseModel):
    key: str = Field(..., min_length=1)


class DeleteObjectResponse(BaseModel):
    success: bool


@router.post("/generate-upload-url", response_model=UploadUrlResponse)
def generate_upload_url(
    request: UploadUrlRequest,
    user_id: CurrentUserDep,
    storage: StorageDep,
) -> UploadUrlResponse:
    """Presigned PUT URL the browser uploads a video to."""
    target = storage.generate_upload_url(user_id, request.file_name, request.content_type)
    return UploadUrlResponse(
        signed_url=target.signed_url,
        key=target.key,
        public_url=target.public_url,
        expires_at=target.expires_at,
    )


@router.post("/delete-object", response_model=DeleteObjectResponse)
def delete_object(
    request: DeleteObjectRequest,
    user_id: CurrentUserDep,
    storage: StorageDep,
) -> DeleteObjectResponse:
    """Delete an object under the caller's key prefix."""
    if not key_belongs_to(user_id, request.key):
        raise NotFoundError("Object not found or access denied")

    storage.delete_object(request.key)
    return DeleteObjectResponse(success=True)
