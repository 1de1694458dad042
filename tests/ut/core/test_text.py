import base64

import pytest

from courier.core.errors import BodyEncodingError
from courier.core.helpers.text import (
    BASE64_V1,
    BODY_ENCODING_HEADER,
    body_encoding,
    from_body,
    is_text_safe,
    to_body,
)


@pytest.mark.ut
@pytest.mark.parametrize("raw, expected", [
    (b"hello", True),
    ("héllo ✓".encode("utf-8"), True),
    (b"tab\tnew\nline\r", True),
    (b"", True),
    (b"nul\x00", False),
    (b"bell\x07", False),
    (b"del\x7f", False),
    (b"\xe9", False),
    (b"\xed\xa0\x80", False),
])
def test_is_text_safe(raw, expected):
    assert is_text_safe(raw) is expected


@pytest.mark.ut
def test_to_body_keeps_text():
    assert to_body(b"hello") == ("hello", {})


@pytest.mark.ut
def test_to_body_encodes_binary():
    body, headers = to_body(b"\x00\xe9")

    assert headers == {BODY_ENCODING_HEADER: BASE64_V1}
    assert base64.b64decode(body) == b"\x00\xe9"


@pytest.mark.ut
def test_to_body_forced_transform():
    body, headers = to_body(b"hello", always_transform=True)

    assert headers == {BODY_ENCODING_HEADER: BASE64_V1}
    assert body == "aGVsbG8="


@pytest.mark.ut
def test_from_body():
    assert from_body("hello") == b"hello"
    assert from_body("hello", {}) == b"hello"
    assert from_body("AOk=", {BODY_ENCODING_HEADER: BASE64_V1}) == b"\x00\xe9"


@pytest.mark.ut
@pytest.mark.parametrize("body, headers, match", [
    ("x", {BODY_ENCODING_HEADER: BASE64_V1}, "invalid base64"),
    ("é===", {BODY_ENCODING_HEADER: BASE64_V1}, "invalid base64"),
    ("aGVsbG8=", {BODY_ENCODING_HEADER: "gzip"}, "unsupported body encoding"),
    ("\ud800", None, "not valid text"),
    ("hello", ["not", "a", "mapping"], "headers must be a mapping"),
])
def test_from_body_errors(body, headers, match):
    with pytest.raises(BodyEncodingError, match=match):
        from_body(body, headers)


@pytest.mark.ut
def test_body_encoding_lookup():
    assert body_encoding(None) is None
    assert body_encoding({"Content-Type": "text/plain"}) is None
    assert body_encoding({"X-BODY-ENCODING": BASE64_V1}) == BASE64_V1
