import re

import pytest

from storage_gateway.core.errors import InvalidDataUrl
from storage_gateway.services.objects import (
    content_disposition,
    filename_from_key,
    format_expiry,
    generate_image_key,
    parse_data_url,
)


def test_parse_data_url():
    assert parse_data_url("data:image/jpeg;base64,aGk=") == ("image/jpeg", b"hi")


@pytest.mark.parametrize(
    "value",
    ["", "data:image/png;base64,", "image/png;base64,aGk=", "data:image/png;base64,aGk=\n"],
)
def test_parse_data_url_rejects_malformed_values(value):
    with pytest.raises(InvalidDataUrl):
        parse_data_url(value)


@pytest.mark.parametrize(
    ("key", "expected"),
    [("u1/avatar.png", "avatar.png"), ("cover.png", "cover.png"), ("exports/", "download")],
)
def test_filename_from_key(key, expected):
    assert filename_from_key(key) == expected


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("cover.png", 'inline; filename="cover.png"'),
        ('a"b\\c.png', r'inline; filename="a\"b\\c.png"'),
        ("café.png", "inline; filename=\"caf?.png\"; filename*=UTF-8''caf%C3%A9.png"),
    ],
)
def test_content_disposition(filename, expected):
    assert content_disposition(filename) == expected


def test_format_expiry_uses_utc_millis():
    assert format_expiry(0) == "1970-01-01T00:00:00.000Z"
    assert format_expiry(1_700_000_000_123) == "2023-11-14T22:13:20.123Z"


def test_generate_image_key():
    assert re.fullmatch(r"avatar-\d{13}-[a-z0-9]{7}\.png", generate_image_key("avatar"))
