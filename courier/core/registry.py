import dataclasses
from enum import Enum
from typing import Callable, Iterator, TypeVar

from courier.core.errors import UnknownType

T = TypeVar("T", bound=type)


class TypeRegistry:
    """
    Closed mapping between type names and the classes allowed to travel
    inside an encoded envelope.

    The serialization engine only ever instantiates classes found here, so
    a payload naming anything else is rejected instead of being imported
    or constructed dynamically.

    Only dataclasses and Enum subclasses can be registered: their state is
    fully described by their fields (or their value), which is what the
    engine writes on the wire.
    """
    def __init__(self) -> None:
        self._by_name: dict[str, type] = {}
        self._by_type: dict[type, str] = {}

    def register(self, cls: T | None = None, *, name: str | None = None) -> T | Callable[[T], T]:
        """
        Register ``cls`` under ``name`` (``module.qualname`` by default).

        Usable as ``@registry.register``, ``@registry.register(name=...)``
        or as a plain call.
        """
        def decorator(klass: T) -> T:
            self._add(klass, name or f"{klass.__module__}.{klass.__qualname__}")
            return klass

        if cls is None:
            return decorator
        return decorator(cls)

    def extend(self, other: "TypeRegistry") -> None:
        for type_name, klass in other._by_name.items():
            self._add(klass, type_name)

    def resolve(self, type_name: str) -> type:
        try:
            return self._by_name[type_name]
        except KeyError:
            raise UnknownType(type_name) from None

    def name_of(self, cls: type) -> str:
        try:
            return self._by_type[cls]
        except KeyError:
            raise UnknownType(f"{cls.__module__}.{cls.__qualname__}") from None

    def name_of_instance(self, obj: object) -> str:
        return self.name_of(type(obj))

    def names(self) -> list[str]:
        return list(self._by_name)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            return item in self._by_name
        return item in self._by_type

    def __len__(self) -> int:
        return len(self._by_name)

    def __iter__(self) -> Iterator[tuple[str, type]]:
        return iter(self._by_name.items())

    def _add(self, cls: type, type_name: str) -> None:
        if not (dataclasses.is_dataclass(cls) or issubclass(cls, Enum)):
            raise TypeError(
                f"{cls.__qualname__} cannot be registered: "
                "only dataclasses and Enum subclasses are supported"
            )

        existing = self._by_name.get(type_name)
        if existing is cls:
            return
        if existing is not None:
            raise ValueError(
                f"Type name {type_name!r} is already registered "
                f"for {existing.__module__}.{existing.__qualname__}"
            )
        if cls in self._by_type:
            raise ValueError(
                f"{cls.__qualname__} is already registered "
                f"as {self._by_type[cls]!r}"
            )

        self._by_name[type_name] = cls
        self._by_type[cls] = type_name


default_registry = TypeRegistry()
"""
Registry holding the envelope and the standard stamps. Application
message types are usually registered here as well, through ``register``.
"""

register = default_registry.register
