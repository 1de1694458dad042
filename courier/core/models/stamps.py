from dataclasses import dataclass, field
from datetime import datetime, timezone

from courier.core.models.envelope import NonSendableStamp, Stamp
from courier.core.registry import register


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@register(name="courier.stamp.bus_name")
@dataclass(frozen=True)
class BusNameStamp(Stamp):
    """Name of the bus the message was dispatched on."""
    bus_name: str


@register(name="courier.stamp.delay")
@dataclass(frozen=True)
class DelayStamp(Stamp):
    delay: int
    """
    Delay before the message may be handled, in milliseconds.
    """

    @classmethod
    def delay_until(cls, when: datetime, now: datetime | None = None) -> "DelayStamp":
        now = now or utcnow()
        return cls(delay=max(0, int((when - now).total_seconds() * 1000)))


@register(name="courier.stamp.redelivery")
@dataclass(frozen=True)
class RedeliveryStamp(Stamp):
    retry_count: int
    redelivered_at: datetime = field(default_factory=utcnow)


@register(name="courier.stamp.error_details")
@dataclass(frozen=True)
class ErrorDetailsStamp(Stamp):
    """Describes the last failure that happened while handling the message."""
    exception_class: str
    message: str
    code: int = 0

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorDetailsStamp":
        klass = type(exc)
        code = getattr(exc, "code", 0)
        if not isinstance(code, int) or isinstance(code, bool):
            code = 0
        return cls(
            exception_class=f"{klass.__module__}.{klass.__qualname__}",
            message=str(exc),
            code=code,
        )


@register(name="courier.stamp.sent_to_failure_transport")
@dataclass(frozen=True)
class SentToFailureTransportStamp(Stamp):
    original_receiver_name: str


@register(name="courier.stamp.message_decoding_failed")
@dataclass(frozen=True)
class MessageDecodingFailedStamp(Stamp):
    message: str = ""


@dataclass(frozen=True)
class ReceivedStamp(NonSendableStamp):
    """Added by a receiver to a message it just fetched. Never sent back."""
    transport_name: str


@dataclass(frozen=True)
class TransportMessageIdStamp(NonSendableStamp):
    id: str
