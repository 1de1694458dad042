from dataclasses import dataclass, replace
from typing import Any, ClassVar, Iterable, TypeVar

from courier.core.registry import register

S = TypeVar("S", bound="Stamp")


class Stamp:
    """
    Base class of every piece of metadata attached to an envelope.

    Concrete stamps are frozen dataclasses registered in a TypeRegistry.
    A stamp whose class sets ``sendable = False`` is a local annotation
    (e.g. added by a transport receiver) and is dropped before an envelope
    is serialized.
    """
    sendable: ClassVar[bool] = True


class NonSendableStamp(Stamp):
    sendable: ClassVar[bool] = False


def is_sendable(stamp: Stamp) -> bool:
    return type(stamp).sendable


@register(name="courier.envelope")
@dataclass(frozen=True)
class Envelope:
    """
    A message together with its ordered stamps.

    Envelopes are immutable: every ``with_``/``without_*`` call returns a
    new envelope. Several stamps of the same type may coexist and their
    relative order is kept.
    """
    message: Any
    stamps: tuple[Stamp, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.message, Envelope):
            raise TypeError("An envelope cannot wrap another envelope, use Envelope.wrap()")
        object.__setattr__(self, "stamps", tuple(self.stamps))

    @classmethod
    def wrap(cls, message: Any, stamps: Iterable[Stamp] = ()) -> "Envelope":
        if isinstance(message, Envelope):
            return message.with_(*stamps)
        return cls(message, tuple(stamps))

    def with_(self, *stamps: Stamp) -> "Envelope":
        return replace(self, stamps=self.stamps + stamps)

    def without_all(self, stamp_type: type[Stamp]) -> "Envelope":
        """Remove every stamp whose class is exactly ``stamp_type``."""
        return replace(self, stamps=tuple(s for s in self.stamps if type(s) is not stamp_type))

    def without_stamps_of_type(self, stamp_type: type[Stamp]) -> "Envelope":
        """Remove every stamp that is an instance of ``stamp_type``, subclasses included."""
        return replace(self, stamps=tuple(s for s in self.stamps if not isinstance(s, stamp_type)))

    def only_sendable(self) -> "Envelope":
        return replace(self, stamps=tuple(s for s in self.stamps if is_sendable(s)))

    def last(self, stamp_type: type[S]) -> S | None:
        for stamp in reversed(self.stamps):
            if type(stamp) is stamp_type:
                return stamp
        return None

    def all(self, stamp_type: type[S] | None = None) -> list[S] | dict[type[Stamp], list[Stamp]]:
        if stamp_type is not None:
            return [s for s in self.stamps if type(s) is stamp_type]

        grouped: dict[type[Stamp], list[Stamp]] = {}
        for stamp in self.stamps:
            grouped.setdefault(type(stamp), []).append(stamp)
        return grouped
