from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import re
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from urllib.parse import quote

from storage_gateway.core.config import Settings, get_settings
from storage_gateway.core.errors import (
    InvalidDataUrl,
    MissingContentType,
    MissingField,
    NotFound,
)
from storage_gateway.core.security import (
    CapabilityToken,
    encode_token,
    now_ms,
    verify_token,
)
from storage_gateway.services.buckets import BucketBinding, BucketName, BucketResolver
from storage_gateway.services.storage import StorageService, StoredObject

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:(.+);base64,(.+)$")
DEFAULT_CONTENT_TYPE = "application/octet-stream"

_KEY_ALPHABET = string.ascii_lowercase + string.digits


def parse_data_url(data_url: str) -> tuple[str, bytes]:
    """Split a ``data:<mime>;base64,<payload>`` string into its MIME type and bytes."""
    match = DATA_URL_PATTERN.fullmatch(data_url)
    if not match:
        raise InvalidDataUrl()
    content_type, raw = match.groups()
    try:
        data = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidDataUrl() from exc
    return content_type, data


def filename_from_key(key: str) -> str:
    return key.split("/")[-1] or "download"


def content_disposition(filename: str) -> str:
    """Inline disposition with an ASCII ``filename`` and an RFC 5987 ``filename*`` when needed."""
    fallback = filename.encode("ascii", "replace").decode("ascii")
    fallback = fallback.replace("\\", "\\\\").replace('"', '\\"')
    value = f'inline; filename="{fallback}"'
    if not filename.isascii():
        value += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return value


def format_expiry(expiry: int) -> str:
    moment = datetime.fromtimestamp(expiry / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_image_key(prefix: str, extension: str = ".png") -> str:
    suffix = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(7))
    return f"{prefix}-{now_ms()}-{suffix}{extension}"


@dataclass
class DeleteResult:
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


@dataclass
class SignedUrls:
    expiry: int
    url: str | None = None
    urls: dict[str, str] | None = None

    @property
    def expires_at(self) -> str:
        return format_expiry(self.expiry)


@dataclass
class Download:
    object: StoredObject
    filename: str

    @property
    def content_type(self) -> str:
        return self.object.content_type or DEFAULT_CONTENT_TYPE


class ObjectService:
    """Validates storage requests and dispatches them to the configured backend."""

    def __init__(
        self,
        storage: StorageService,
        resolver: BucketResolver | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.storage = storage
        self.resolver = resolver or BucketResolver(self.settings)

    async def delete_objects(
        self,
        bucket: str | None,
        key: str | None = None,
        keys: list[str] | None = None,
    ) -> DeleteResult:
        if not bucket:
            raise MissingField("Missing required field: bucket")
        if not key and not keys:
            raise MissingField("Missing required field: key or keys")

        binding = self.resolver.resolve(bucket)
        keys_to_delete = list(keys) if keys else [key]

        async def _delete(target: str) -> bool:
            try:
                await self.storage.delete_object(binding.physical_name, target)
            except Exception:
                logger.exception("Failed to delete %s from bucket %s", target, bucket)
                return False
            return True

        outcomes = await asyncio.gather(*(_delete(target) for target in keys_to_delete))

        result = DeleteResult()
        for target, ok in zip(keys_to_delete, outcomes):
            (result.deleted if ok else result.failed).append(target)
        return result

    async def download(self, token: str) -> Download:
        payload = verify_token(token, "download")
        binding = self.resolver.resolve(payload.bucket)
        stored = await self.storage.get_object(binding.physical_name, payload.key)
        if stored is None:
            raise NotFound()
        return Download(object=stored, filename=filename_from_key(payload.key))

    def create_signed_urls(
        self,
        download_endpoint: str,
        upload_endpoint: str,
        bucket: str | None,
        key: str | None = None,
        keys: list[str] | None = None,
        expires_in: int | None = None,
        action: str = "download",
        content_type: str | None = None,
    ) -> SignedUrls:
        if not bucket or (not key and not keys):
            raise MissingField("Missing required fields: bucket, and either key or keys")
        if action == "upload" and not content_type:
            raise MissingContentType()

        self.resolver.resolve(bucket)
        ttl = expires_in if expires_in is not None else self.settings.signed_url_default_ttl
        expiry = now_ms() + ttl * 1000
        endpoint = download_endpoint if action == "download" else upload_endpoint

        def _url(target: str) -> str:
            token = encode_token(
                CapabilityToken(
                    bucket=bucket,
                    key=target,
                    expiry=expiry,
                    action=action,
                    content_type=content_type if action == "upload" else None,
                )
            )
            return f"{endpoint}?token={quote(token, safe='')}"

        if keys:
            return SignedUrls(expiry=expiry, urls={target: _url(target) for target in keys})
        return SignedUrls(expiry=expiry, url=_url(key))

    async def upload_data_url(
        self,
        bucket: str | None,
        key: str | None,
        base64_data: str | None,
        metadata: dict[str, str] | None = None,
    ) -> BucketBinding:
        if not bucket or not key or not base64_data:
            raise MissingField("Missing required fields: bucket, key, base64Data")

        binding = self.resolver.resolve(bucket)
        content_type, data = parse_data_url(base64_data)
        await self.storage.put_object(
            binding.physical_name,
            key,
            data,
            content_type=content_type,
            metadata=metadata,
        )
        logger.info("Stored %d bytes at %s/%s", len(data), bucket, key)
        return binding

    async def upload_with_token(
        self,
        token: str,
        data: bytes,
        request_content_type: str | None = None,
    ) -> tuple[CapabilityToken, BucketBinding]:
        payload = verify_token(token, "upload")
        binding = self.resolver.resolve(payload.bucket)
        content_type = payload.content_type or request_content_type or DEFAULT_CONTENT_TYPE
        await self.storage.put_object(
            binding.physical_name,
            payload.key,
            data,
            content_type=content_type,
        )
        return payload, binding

    async def put_image(
        self,
        bucket: BucketName,
        key: str,
        data: bytes,
        content_type: str | None,
    ) -> None:
        binding = self.resolver.resolve(bucket.value)
        await self.storage.put_object(
            binding.physical_name,
            key,
            data,
            content_type=content_type or "image/png",
        )

    async def get_image(self, bucket: BucketName, key: str, missing_message: str) -> StoredObject:
        binding = self.resolver.resolve(bucket.value)
        stored = await self.storage.get_object(binding.physical_name, key)
        if stored is None:
            raise NotFound(missing_message)
        return stored

    def create_feedback_upload(self) -> tuple[str, str]:
        binding = self.resolver.resolve(BucketName.FEEDBACK.value)
        key = generate_image_key("feedback")
        upload_url = self.storage.create_presigned_put(
            binding.physical_name,
            key,
            "image/png",
            expires_in=self.settings.feedback_upload_ttl,
        )
        return key, upload_url
