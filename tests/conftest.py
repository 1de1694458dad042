import pytest

from courier.core.codec import EnvelopeCodec
from courier.infra.msgpack_serializer import MsgPackSerializer
from tests.fake.fake_serializer import JsonSerializer
# Registers the test message types
import tests.fake.messages  # noqa: F401


@pytest.fixture
def serializer() -> MsgPackSerializer:
    return MsgPackSerializer()


@pytest.fixture
def codec(serializer) -> EnvelopeCodec:
    return EnvelopeCodec(serializer)


@pytest.fixture
def text_codec() -> EnvelopeCodec:
    return EnvelopeCodec(JsonSerializer())


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("COURIER_CONFIG", "COURIER_LOG_LEVEL", "COURIER_CODEC__ALWAYS_TRANSFORM"):
        monkeypatch.delenv(name, raising=False)
