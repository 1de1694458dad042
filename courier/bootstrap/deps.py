import json
from functools import lru_cache

from pydantic import ValidationError

from courier.bootstrap.config.loader import get_configfile, load_configfile
from courier.bootstrap.config.settings import CourierSettings
from courier.core.codec import EnvelopeCodec
from courier.core.helpers.utils import scan
from courier.core.registry import TypeRegistry, default_registry
from courier.infra.msgpack_serializer import MsgPackSerializer


def load_settings(config: str | None = None) -> CourierSettings:
    data = load_configfile(get_configfile(config))
    try:
        return CourierSettings(**data)
    except ValidationError as ex:
        msg = ["Configuration validation failed:"]
        errs = json.loads(ex.json())
        for err in errs:
            msg.append(f"  {'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}")
        raise SystemExit("\n".join(msg))


def build_serializer(
    settings: CourierSettings,
    registry: TypeRegistry = default_registry
) -> MsgPackSerializer:
    scan(settings.codec.scan)
    return MsgPackSerializer(registry)


def build_codec(
    settings: CourierSettings,
    registry: TypeRegistry = default_registry
) -> EnvelopeCodec:
    return EnvelopeCodec(
        serializer=build_serializer(settings, registry),
        always_transform=settings.codec.always_transform
    )


@lru_cache
def get_settings() -> CourierSettings:
    return load_settings()


@lru_cache
def get_codec() -> EnvelopeCodec:
    return build_codec(get_settings())
