import asyncio
import hashlib
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final
from urllib.parse import quote

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

from storage_gateway.core.config import Settings, get_settings
from storage_gateway.core.errors import InvalidStorageKey

logger = logging.getLogger(__name__)

_MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


@dataclass
class StoredObject:
    body: bytes
    content_type: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    etag: str | None = None


class StorageService:
    """S3-compatible storage backend (Cloudflare R2 in production)."""

    scheme: Final[str] = "s3"

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        session = boto3.session.Session()
        self.client = session.client(
            "s3",
            endpoint_url=self.settings.endpoint_url,
            aws_access_key_id=self.settings.s3_access_key,
            aws_secret_access_key=self.settings.s3_secret_key,
            region_name=self.settings.s3_region,
            config=Config(signature_version="s3v4"),
        )

    def create_presigned_put(
        self,
        bucket: str,
        key: str,
        content_type: str,
        expires_in: int = 300,
    ) -> str:
        return self.client.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": bucket,
                "Key": key,
                "ContentType": content_type,
            },
            ExpiresIn=expires_in,
        )

    async def get_object(self, bucket: str, key: str) -> StoredObject | None:
        def _get() -> StoredObject | None:
            try:
                response = self.client.get_object(Bucket=bucket, Key=key)
            except ClientError as exc:
                if exc.response.get("Error", {}).get("Code") in _MISSING_OBJECT_CODES:
                    return None
                raise
            return StoredObject(
                body=response["Body"].read(),
                content_type=response.get("ContentType"),
                metadata=response.get("Metadata") or {},
                etag=response.get("ETag"),
            )

        return await asyncio.to_thread(_get)

    async def put_object(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None:
        params = {"Bucket": bucket, "Key": key, "Body": data}
        if content_type:
            params["ContentType"] = content_type
        if metadata:
            params["Metadata"] = metadata

        def _upload() -> None:
            self.client.put_object(**params)

        await asyncio.to_thread(_upload)

    async def delete_object(self, bucket: str, key: str) -> None:
        # S3 and R2 report success for keys that do not exist.
        def _delete() -> None:
            self.client.delete_object(Bucket=bucket, Key=key)

        await asyncio.to_thread(_delete)

    async def check_bucket(self, bucket: str) -> None:
        def _head() -> None:
            self.client.head_bucket(Bucket=bucket)

        await asyncio.to_thread(_head)


class LocalStorageService(StorageService):
    """Local filesystem storage intended for development use."""

    scheme: Final[str] = "local"

    def __init__(self, settings: Settings | None = None) -> None:  # type: ignore[override]
        self.settings = settings or get_settings()
        self.base_path = Path(self.settings.local_storage_dir).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.meta_path = self.base_path / ".meta"

    def _key_path(self, root: Path, bucket: str, key: str) -> Path:
        # Prevent directory traversal by resolving inside the bucket directory
        bucket_root = root.joinpath(bucket).resolve()
        candidate = bucket_root.joinpath(*Path(key).parts).resolve()
        if not str(candidate).startswith(str(bucket_root) + "/"):
            raise InvalidStorageKey()
        return candidate

    def _object_path(self, bucket: str, key: str) -> Path:
        return self._key_path(self.base_path, bucket, key)

    def _metadata_path(self, bucket: str, key: str) -> Path:
        path = self._key_path(self.meta_path, bucket, key)
        return path.with_name(path.name + ".json")

    def create_presigned_put(
        self,
        bucket: str,
        key: str,
        content_type: str,
        expires_in: int = 300,
    ) -> str:  # type: ignore[override]
        # Returns a local scheme that routers translate into real URLs.
        return f"local://upload/{quote(bucket)}/{quote(key)}"

    async def get_object(self, bucket: str, key: str) -> StoredObject | None:  # type: ignore[override]
        source = self._object_path(bucket, key)
        meta_source = self._metadata_path(bucket, key)

        def _read() -> StoredObject | None:
            if not source.is_file():
                return None
            body = source.read_bytes()
            meta = {}
            if meta_source.is_file():
                meta = json.loads(meta_source.read_text(encoding="utf-8"))
            return StoredObject(
                body=body,
                content_type=meta.get("content_type"),
                metadata=meta.get("metadata") or {},
                etag=f'"{hashlib.md5(body).hexdigest()}"',
            )

        return await asyncio.to_thread(_read)

    async def put_object(  # type: ignore[override]
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None:
        target = self._object_path(bucket, key)
        meta_target = self._metadata_path(bucket, key)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
            meta_target.parent.mkdir(parents=True, exist_ok=True)
            meta_target.write_text(
                json.dumps({"content_type": content_type, "metadata": metadata or {}}),
                encoding="utf-8",
            )

        await asyncio.to_thread(_write)

    async def delete_object(self, bucket: str, key: str) -> None:  # type: ignore[override]
        target = self._object_path(bucket, key)
        meta_target = self._metadata_path(bucket, key)

        def _remove() -> None:
            target.unlink(missing_ok=True)
            meta_target.unlink(missing_ok=True)

        await asyncio.to_thread(_remove)

    async def check_bucket(self, bucket: str) -> None:  # type: ignore[override]
        directory = self.base_path / bucket
        await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)


def build_storage_service(settings: Settings | None = None) -> StorageService:
    settings = settings or get_settings()
    if settings.storage_backend == "local":
        logger.info("Using local storage backend at %s", settings.local_storage_dir)
        return LocalStorageService(settings)
    return StorageService(settings)
