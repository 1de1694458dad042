from typing import Any, Mapping, Protocol

from courier.core.models.envelope import Envelope
from courier.core.models.frame import EncodedFrame


class Serializer(Protocol):
    """
    Native serialization engine: turns an object graph into bytes and back,
    identifying objects by their registered type name.

    Implementations must be:
    - deterministic
    - pure (no side effects)
    - safe against malformed input: every decoding failure is raised as a
      SerializationError subclass, never as a lower level exception
    """

    def serialize(self, value: Any) -> bytes:
        """Encode a Python object graph into bytes."""

    def deserialize(self, data: bytes) -> Any:
        """Rebuild the object graph encoded in ``data``."""


class EnvelopeSerializer(Protocol):
    """Strategy converting envelopes to transport frames and back."""

    def encode(self, envelope: Envelope) -> EncodedFrame:
        ...

    def decode(self, frame: Mapping[str, Any]) -> Envelope:
        ...
