import base64

import msgpack

from courier.core.helpers.text import BASE64_V1, BODY_ENCODING_HEADER
from courier.infra.msgpack_serializer import ExtCode


def pack_object(type_name: str, state: dict) -> msgpack.ExtType:
    return msgpack.ExtType(ExtCode.OBJECT, msgpack.packb([type_name, state], use_bin_type=True))


def pack_tuple(*items) -> msgpack.ExtType:
    return msgpack.ExtType(ExtCode.TUPLE, msgpack.packb(list(items), use_bin_type=True))


def b64_frame(raw: bytes) -> dict:
    return {
        "body": base64.b64encode(raw).decode("ascii"),
        "headers": {BODY_ENCODING_HEADER: BASE64_V1},
    }


def raw_body(frame: dict) -> bytes:
    if frame.get("headers", {}).get(BODY_ENCODING_HEADER) == BASE64_V1:
        return base64.b64decode(frame["body"])
    return frame["body"].encode("utf-8")
