import pytest
from jose import jwt

from storage_gateway.core.errors import ActionMismatch, Expired, MalformedToken
from storage_gateway.core.security import (
    CapabilityToken,
    decode_token,
    encode_token,
    now_ms,
    verify_token,
)


@pytest.mark.parametrize(
    "payload",
    [
        CapabilityToken(bucket="projects", key="a.png", expiry=1_900_000_000_000, action="download"),
        CapabilityToken(
            bucket="exports",
            key="books/full book.pdf",
            expiry=1,
            action="upload",
            content_type="application/pdf",
        ),
    ],
)
def test_decode_reverses_encode(payload):
    assert decode_token(encode_token(payload)) == payload


def test_encoded_claims_use_wire_names():
    token = encode_token(
        CapabilityToken(bucket="projects", key="a.png", expiry=5, action="upload", content_type="image/png")
    )
    claims = jwt.get_unverified_claims(token)
    assert claims == {
        "bucket": "projects",
        "key": "a.png",
        "expiry": 5,
        "action": "upload",
        "contentType": "image/png",
    }


def test_tampered_token_is_rejected():
    token = encode_token(
        CapabilityToken(bucket="projects", key="a.png", expiry=now_ms() + 1000, action="download")
    )
    forged = jwt.encode(
        {"bucket": "feedback", "key": "a.png", "expiry": now_ms() + 1000, "action": "download"},
        "someone-else",
        algorithm="HS256",
    )
    signature = token.rpartition(".")[2]
    assert decode_token(token).bucket == "projects"
    with pytest.raises(MalformedToken):
        decode_token(forged)
    with pytest.raises(MalformedToken):
        decode_token(f"{forged.rpartition('.')[0]}.{signature}")


def test_token_with_missing_claims_is_malformed():
    token = jwt.encode({"bucket": "projects"}, "test-secret", algorithm="HS256")
    with pytest.raises(MalformedToken):
        decode_token(token)


def test_expired_token_rejected_even_when_otherwise_valid():
    token = encode_token(
        CapabilityToken(bucket="projects", key="a.png", expiry=1_000, action="download")
    )
    with pytest.raises(Expired):
        verify_token(token, "download", now=1_001)
    assert verify_token(token, "download", now=1_000).key == "a.png"


def test_action_mismatch_rejected():
    token = encode_token(
        CapabilityToken(bucket="projects", key="a.png", expiry=now_ms() + 60_000, action="upload")
    )
    with pytest.raises(ActionMismatch):
        verify_token(token, "download")
