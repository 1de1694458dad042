import logging
from typing import Any, Mapping

# Registers the standard stamps in the default registry
import courier.core.models.stamps  # noqa: F401
from courier.core.errors import BodyEncodingError, DecodingFailed, SerializationError
from courier.core.helpers.text import from_body, to_body
from courier.core.models.envelope import Envelope, is_sendable
from courier.core.models.frame import EncodedFrame
from courier.core.ports.serializer import EnvelopeSerializer, Serializer

MISSING_BODY = (
    'Encoded envelope should have at least a "body", '
    'or maybe you should implement your own serializer.'
)


class EnvelopeCodec(EnvelopeSerializer):
    """
    Encodes envelopes into text frames with the native serialization engine
    and decodes them back.

    Encoding drops non-sendable stamps, serializes the envelope as a single
    object graph and makes sure the body is safe for a text transport: raw
    bytes that are not clean UTF-8 are base64 encoded and flagged with the
    ``x-body-encoding`` header.

    Decoding is a linear pipeline with three failure exits (missing body,
    invalid body encoding, engine failure). All of them raise
    DecodingFailed; the engine error, if any, is kept as ``__cause__``.

    The codec holds no mutable state and can be shared between threads.
    """
    def __init__(self, serializer: Serializer, always_transform: bool = False) -> None:
        self._serializer = serializer
        self._always_transform = always_transform
        self._logger = logging.getLogger("core.codec")

    def encode(self, envelope: Envelope) -> EncodedFrame:
        stamps = tuple(s for s in envelope.stamps if is_sendable(s))
        raw = self._serializer.serialize(Envelope(envelope.message, stamps))
        body, headers = to_body(raw, self._always_transform)

        return {"body": body, "headers": headers}

    def decode(self, frame: Mapping[str, Any]) -> Envelope:
        if "body" not in frame:
            raise DecodingFailed(MISSING_BODY)

        body = frame["body"]
        if not isinstance(body, str):
            raise DecodingFailed(
                f"Could not decode message: body must be a string, got {type(body).__qualname__}"
            )

        try:
            raw = from_body(body, frame.get("headers"))
        except BodyEncodingError as ex:
            self._logger.debug(f"Invalid body encoding: {ex}")
            raise DecodingFailed(f"Could not decode message: {ex}") from ex

        try:
            envelope = self._serializer.deserialize(raw)
        except SerializationError as ex:
            self._logger.debug(f"Engine failed to decode body: {ex}")
            raise DecodingFailed(f"Could not decode message: {ex}") from ex

        if not isinstance(envelope, Envelope):
            self._logger.debug(f"Decoded payload is a {type(envelope).__qualname__}, not an envelope")
            raise DecodingFailed(
                "Could not decode message: payload is not an envelope "
                f"(got {type(envelope).__qualname__})"
            )

        if isinstance(envelope.message, Envelope):
            self._logger.debug("Decoded envelope wraps another envelope")
            raise DecodingFailed("Could not decode message: an envelope cannot wrap another envelope")

        return envelope
