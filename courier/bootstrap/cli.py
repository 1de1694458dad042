import json
import logging
import sys
from typing import Any, Sequence, TextIO

from courier.bootstrap.config.loader import build_parser
from courier.bootstrap.deps import build_serializer, load_settings
from courier.core.codec import MISSING_BODY, EnvelopeCodec
from courier.core.errors import CourierError, DecodingFailed
from courier.core.helpers.text import body_encoding, from_body
from courier.core.helpers.utils import setup_logging
from courier.infra.msgpack_serializer import MsgPackSerializer


def read_frame(source: str) -> dict[str, Any]:
    if source == "-":
        text = sys.stdin.read()
    else:
        with open(source, "r", encoding="utf-8") as f:
            text = f.read()

    frame = json.loads(text)
    if not isinstance(frame, dict):
        raise ValueError("a frame must be a JSON object")
    return frame


def print_envelope(codec: EnvelopeCodec, frame: dict[str, Any], out: TextIO) -> None:
    envelope = codec.decode(frame)
    message = envelope.message

    print(f"message: {type(message).__module__}.{type(message).__qualname__}", file=out)
    print(f"  {message!r}", file=out)
    print(f"stamps: {len(envelope.stamps)}", file=out)
    for stamp in envelope.stamps:
        print(f"  - {stamp!r}", file=out)


def print_summary(serializer: MsgPackSerializer, frame: dict[str, Any], out: TextIO) -> None:
    body = frame.get("body")
    if not isinstance(body, str):
        raise DecodingFailed(MISSING_BODY)

    headers = frame.get("headers")
    raw = from_body(body, headers)
    names = serializer.type_names(raw)

    print(f"encoding: {body_encoding(headers) or 'text'}", file=out)
    print(f"size: {len(raw)} bytes", file=out)
    print("types:", file=out)
    for name in names:
        known = "registered" if name in serializer.registry else "unknown"
        print(f"  - {name} ({known})", file=out)


def main(argv: Sequence[str] | None = None, out: TextIO = sys.stdout) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config)
    if args.scan:
        settings.codec.scan.extend(args.scan)

    setup_logging(args.log_level or settings.log_level)
    logger = logging.getLogger("bootstrap.cli")

    serializer = build_serializer(settings)
    codec = EnvelopeCodec(
        serializer=serializer,
        always_transform=settings.codec.always_transform
    )

    try:
        frame = read_frame(args.frame)
    except (OSError, ValueError) as ex:
        print(f"error: cannot read frame {args.frame!r}: {ex}", file=sys.stderr)
        return 2

    try:
        if args.command == "decode":
            print_envelope(codec, frame, out)
        else:
            print_summary(serializer, frame, out)
    except CourierError as ex:
        logger.debug("Frame rejected", exc_info=ex)
        print(f"error: {ex}", file=sys.stderr)
        return 1

    return 0


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
