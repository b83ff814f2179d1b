from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# One year, in seconds.
MAX_SIGNED_URL_TTL = 365 * 24 * 3600


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class DeleteRequest(_CamelModel):
    bucket: str | None = None
    key: str | None = None
    keys: list[str] | None = None


class DeleteResponse(_CamelModel):
    success: bool
    deleted: list[str]
    failed: list[str]


class SignedUrlRequest(_CamelModel):
    bucket: str | None = None
    key: str | None = None
    keys: list[str] | None = None
    expires_in: int | None = Field(
        default=None, alias="expiresIn", gt=0, le=MAX_SIGNED_URL_TTL
    )
    action: Literal["download", "upload"] = "download"
    content_type: str | None = Field(default=None, alias="contentType")


class SignedUrlResponse(_CamelModel):
    success: bool = True
    url: str | None = None
    urls: dict[str, str] | None = None
    expires_at: str = Field(alias="expiresAt")


class UploadRequest(_CamelModel):
    bucket: str | None = None
    key: str | None = None
    base64_data: str | None = Field(default=None, alias="base64Data")
    metadata: dict[str, str] | None = None


class UploadResponse(_CamelModel):
    success: bool = True
    key: str
    bucket: str
    is_public: bool = Field(alias="isPublic")


class ImageUploadResponse(_CamelModel):
    success: bool = True
    key: str
    url: str


class PendingUploadResponse(_CamelModel):
    key: str
    upload_url: str = Field(alias="uploadUrl")
