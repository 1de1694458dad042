import dataclasses
import functools
import logging
import typing
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

import msgpack
from pydantic import ConfigDict, TypeAdapter, ValidationError

from courier.core.errors import SerializationError, TypeMismatch, UnparsablePayload
from courier.core.ports.serializer import Serializer
from courier.core.registry import TypeRegistry, default_registry

logger = logging.getLogger("infra.msgpack_serializer")

_STRICT = ConfigDict(strict=True, arbitrary_types_allowed=True)


class ExtCode(IntEnum):
    OBJECT = 1
    TUPLE = 2
    SET = 3
    FROZENSET = 4
    ENUM = 5


class MsgPackSerializer(Serializer):
    """
    MsgPack-based native serialization engine.

    Besides the msgpack primitives it handles:
    - registered dataclasses, written as ``[type_name, {field: value}]``
    - registered enums, written as ``[type_name, value]``
    - tuples, sets and frozensets, so they come back with their own type
    - timezone-aware datetimes, as msgpack timestamps

    Objects are rebuilt without calling ``__init__``: each stored field is
    checked against the field annotation of the live class (strict pydantic
    validation) and assigned directly. Only classes found in the registry
    are ever instantiated.
    """
    def __init__(self, registry: TypeRegistry = default_registry) -> None:
        self._registry = registry

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    def serialize(self, value: Any) -> bytes:
        return self._pack(value)

    def deserialize(self, data: bytes) -> Any:
        try:
            return self._unpack(data, self._ext_hook)
        except SerializationError:
            raise
        except (ValueError, TypeError, ArithmeticError, RecursionError) as ex:
            # msgpack.ExtraData, FormatError and StackError are ValueErrors,
            # out of range timestamps raise OverflowError
            raise UnparsablePayload(f"{type(ex).__name__}: {ex}") from ex

    def type_names(self, data: bytes) -> list[str]:
        """
        List the type names referenced by ``data`` without resolving them.
        """
        found: set[str] = set()

        def hook(code: int, payload: bytes) -> None:
            inner = self._unpack(payload, hook)
            if code in (ExtCode.OBJECT, ExtCode.ENUM):
                if isinstance(inner, list) and inner and isinstance(inner[0], str):
                    found.add(inner[0])

        try:
            self._unpack(data, hook)
        except (ValueError, TypeError, ArithmeticError, RecursionError) as ex:
            raise UnparsablePayload(f"{type(ex).__name__}: {ex}") from ex

        return sorted(found)

    def _pack(self, value: Any) -> bytes:
        # strict_types sends tuples and subclasses of builtins (IntEnum,
        # StrEnum) through _default instead of flattening them.
        return msgpack.packb(
            value,
            default=self._default,
            use_bin_type=True,
            strict_types=True,
            datetime=True,
        )

    @staticmethod
    def _unpack(data: bytes, ext_hook: typing.Callable[[int, bytes], Any]) -> Any:
        return msgpack.unpackb(
            data,
            ext_hook=ext_hook,
            raw=False,
            strict_map_key=False,
            timestamp=3,
        )

    def _default(self, obj: Any) -> msgpack.ExtType:
        if type(obj) is tuple:
            return msgpack.ExtType(ExtCode.TUPLE, self._pack(list(obj)))
        if type(obj) is set:
            return msgpack.ExtType(ExtCode.SET, self._pack(list(obj)))
        if type(obj) is frozenset:
            return msgpack.ExtType(ExtCode.FROZENSET, self._pack(list(obj)))
        if isinstance(obj, Enum):
            name = self._registry.name_of_instance(obj)
            return msgpack.ExtType(ExtCode.ENUM, self._pack([name, obj.value]))
        if isinstance(obj, datetime):
            raise ValueError("Cannot serialize a naive datetime, attach a tzinfo")
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            name = self._registry.name_of_instance(obj)
            state = {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
            return msgpack.ExtType(ExtCode.OBJECT, self._pack([name, state]))

        raise TypeError(f"Cannot serialize object of type {type(obj).__qualname__}")

    def _ext_hook(self, code: int, data: bytes) -> Any:
        if code == ExtCode.OBJECT:
            name, state = self._unpack_header(data)
            if not isinstance(state, dict):
                raise UnparsablePayload(f"invalid state for {name!r}")
            return self._restore(name, state)

        if code == ExtCode.ENUM:
            name, value = self._unpack_header(data)
            cls = self._registry.resolve(name)
            if not (isinstance(cls, type) and issubclass(cls, Enum)):
                raise TypeMismatch(name, None, "registered type is not an enum")
            try:
                return cls(value)
            except ValueError:
                raise TypeMismatch(name, None, f"{value!r} is not a valid member") from None

        if code in (ExtCode.TUPLE, ExtCode.SET, ExtCode.FROZENSET):
            items = self._unpack(data, self._ext_hook)
            if not isinstance(items, list):
                raise UnparsablePayload(f"invalid {ExtCode(code).name.lower()} payload")
            if code == ExtCode.TUPLE:
                return tuple(items)
            if code == ExtCode.SET:
                return set(items)
            return frozenset(items)

        raise UnparsablePayload(f"unknown extension type {code}")

    def _unpack_header(self, data: bytes) -> tuple[str, Any]:
        header = self._unpack(data, self._ext_hook)
        if not (isinstance(header, list) and len(header) == 2 and isinstance(header[0], str)):
            raise UnparsablePayload("malformed object header")
        return header[0], header[1]

    def _restore(self, name: str, state: dict[Any, Any]) -> Any:
        cls = self._registry.resolve(name)
        if not dataclasses.is_dataclass(cls):
            raise TypeMismatch(name, None, "registered type is not a dataclass")

        fields = {f.name: f for f in dataclasses.fields(cls)}
        for key in state:
            if key not in fields:
                raise TypeMismatch(name, str(key), "field does not exist anymore")

        checks = field_checks(cls)
        obj = object.__new__(cls)

        for field_name, field in fields.items():
            if field_name in state:
                value = state[field_name]
                _check_value(name, field_name, checks.get(field_name), value)
            elif field.default is not dataclasses.MISSING:
                value = field.default
            elif field.default_factory is not dataclasses.MISSING:
                value = field.default_factory()
            else:
                raise TypeMismatch(name, field_name, "missing value")

            object.__setattr__(obj, field_name, value)

        return obj


Check = type | TypeAdapter | None


@functools.lru_cache(maxsize=None)
def field_checks(cls: type) -> dict[str, Check]:
    """
    Build, once per class, the validator of each dataclass field:
    - None for ``Any`` (anything goes)
    - the class itself for non-builtin classes (isinstance check)
    - a strict TypeAdapter for everything else
    """
    try:
        hints = typing.get_type_hints(cls)
    except (NameError, TypeError) as ex:
        logger.warning(f"Cannot resolve annotations of {cls.__qualname__}, fields are unchecked: {ex}")
        return {}

    checks: dict[str, Check] = {}
    for field in dataclasses.fields(cls):
        annotation = hints.get(field.name, Any)
        if annotation is Any:
            checks[field.name] = None
        elif isinstance(annotation, type) and annotation.__module__ != "builtins":
            checks[field.name] = annotation
        else:
            checks[field.name] = TypeAdapter(annotation, config=_STRICT)
    return checks


def _check_value(type_name: str, field: str, check: Check, value: Any) -> None:
    if check is None:
        return

    if isinstance(check, type):
        if not isinstance(value, check):
            raise TypeMismatch(
                type_name, field,
                f"expected {check.__qualname__}, got {type(value).__qualname__}"
            )
        return

    try:
        check.validate_python(value)
    except ValidationError as ex:
        reason = "; ".join(err["msg"] for err in ex.errors())
        raise TypeMismatch(type_name, field, f"{reason} (got {type(value).__qualname__})") from ex
