import time
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from storage_gateway.core.config import get_settings
from storage_gateway.core.errors import ActionMismatch, Expired, MalformedToken


class CapabilityToken(BaseModel):
    """Time-limited permission to perform one action on one stored object."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    bucket: str
    key: str
    expiry: int  # epoch milliseconds
    action: str
    content_type: str | None = Field(default=None, alias="contentType")


def now_ms() -> int:
    return int(time.time() * 1000)


def encode_token(payload: CapabilityToken) -> str:
    settings = get_settings()
    claims: dict[str, Any] = payload.model_dump(by_alias=True, exclude_none=True)
    return jwt.encode(
        claims,
        settings.token_secret_key,
        algorithm=settings.token_algorithm,
    )


def decode_token(token: str) -> CapabilityToken:
    settings = get_settings()
    try:
        claims = jwt.decode(
            token,
            settings.token_secret_key,
            algorithms=[settings.token_algorithm],
        )
    except JWTError as exc:
        raise MalformedToken() from exc

    try:
        return CapabilityToken.model_validate(claims)
    except ValidationError as exc:
        raise MalformedToken() from exc


def verify_token(token: str, expected_action: str, now: int | None = None) -> CapabilityToken:
    payload = decode_token(token)
    current = now_ms() if now is None else now
    if current > payload.expiry:
        raise Expired()
    if payload.action != expected_action:
        raise ActionMismatch()
    return payload
