from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        protected_namespaces=(),
    )

    env: Literal["local", "prod", "test"] = Field(default="local", alias="ENV")
    debug: bool = Field(default=True, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    api_prefix: str = Field(default="/api", alias="API_PREFIX")

    storage_backend: Literal["s3", "local"] = Field(default="s3", alias="STORAGE_BACKEND")
    local_storage_dir: str = Field(default="./.storage", alias="LOCAL_STORAGE_DIR")

    r2_account_id: str | None = Field(default=None, alias="R2_ACCOUNT_ID")
    s3_endpoint: HttpUrl | None = Field(default=None, alias="S3_ENDPOINT_URL")
    s3_access_key: str = Field(default="change-me", alias="S3_ACCESS_KEY")
    s3_secret_key: str = Field(default="change-me", alias="S3_SECRET_KEY")
    s3_region: str | None = Field(default="auto", alias="S3_REGION")

    projects_bucket: str = Field(default="projects", alias="PROJECTS_BUCKET")
    avatars_bucket: str = Field(default="avatars", alias="AVATARS_BUCKET")
    exports_bucket: str = Field(default="exports", alias="EXPORTS_BUCKET")
    feedback_bucket: str = Field(default="feedback", alias="FEEDBACK_BUCKET")

    token_secret_key: str = Field(default="secret-key-change-me", alias="TOKEN_SECRET_KEY")
    token_algorithm: str = Field(default="HS256", alias="TOKEN_ALGORITHM")
    signed_url_default_ttl: int = Field(default=3600, alias="SIGNED_URL_DEFAULT_TTL")
    feedback_upload_ttl: int = Field(default=300, alias="FEEDBACK_UPLOAD_TTL")
    max_image_upload_bytes: int = Field(
        default=5 * 1024 * 1024, alias="MAX_IMAGE_UPLOAD_BYTES"
    )

    @property
    def endpoint_url(self) -> str | None:
        if self.s3_endpoint:
            return str(self.s3_endpoint)
        if self.r2_account_id:
            return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"
        return None


@lru_cache
def get_settings() -> Settings:
    return Settings()
