class CourierError(Exception):
    """Base class for every error raised by courier."""


class DecodingFailed(CourierError):
    """
    Raised when an encoded frame cannot be turned back into an envelope.

    This is the only error the codec lets escape from ``decode``. The
    underlying cause, when there is one, is available as ``__cause__``.
    """


class BodyEncodingError(CourierError):
    """The transport-safety transform of a body could not be reversed."""


class SerializationError(CourierError):
    """Base class for failures of the native serialization engine."""


class UnparsablePayload(SerializationError):
    """The payload is not in the engine's format at all."""


class UnknownType(SerializationError):
    def __init__(self, type_name: str) -> None:
        super().__init__(f'class "{type_name}" not found')
        self.type_name = type_name


class TypeMismatch(SerializationError):
    """
    A stored value no longer matches the live definition of its type,
    e.g. a field declared as ``str`` holds a boolean.
    """
    def __init__(self, type_name: str, field: str | None, reason: str) -> None:
        where = f"{type_name}.{field}" if field else type_name
        super().__init__(f"cannot restore {where}: {reason}")
        self.type_name = type_name
        self.field = field
