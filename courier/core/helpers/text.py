import base64
import binascii
import re
from typing import Mapping

from courier.core.errors import BodyEncodingError

BODY_ENCODING_HEADER = "x-body-encoding"
BASE64_V1 = "base64.v1"

# C0 controls except \t \n \r, plus DEL
_UNSAFE_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def is_text_safe(raw: bytes) -> bool:
    """
    True when ``raw`` can travel as-is over a text transport: valid UTF-8
    and free of control characters (NUL included).
    """
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return _UNSAFE_CHARS.search(text) is None


def to_body(raw: bytes, always_transform: bool = False) -> tuple[str, dict[str, str]]:
    if not always_transform and is_text_safe(raw):
        return raw.decode("utf-8"), {}

    body = base64.b64encode(raw).decode("ascii")
    return body, {BODY_ENCODING_HEADER: BASE64_V1}


def body_encoding(headers: Mapping[str, str] | None) -> str | None:
    if not headers:
        return None
    if not isinstance(headers, Mapping):
        raise BodyEncodingError(f"headers must be a mapping, got {type(headers).__qualname__}")
    for name, value in headers.items():
        if str(name).lower() == BODY_ENCODING_HEADER:
            return value
    return None


def from_body(body: str, headers: Mapping[str, str] | None = None) -> bytes:
    """Reverse ``to_body``. Raises BodyEncodingError on invalid input."""
    encoding = body_encoding(headers)

    if encoding is None:
        try:
            return body.encode("utf-8")
        except UnicodeEncodeError as ex:
            raise BodyEncodingError(f"body is not valid text: {ex}") from ex

    if encoding != BASE64_V1:
        raise BodyEncodingError(f"unsupported body encoding {encoding!r}")

    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as ex:
        raise BodyEncodingError(f"invalid base64 body: {ex}") from ex
