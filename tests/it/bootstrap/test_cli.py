import io
import json
import struct

import msgpack
import pytest

from courier.bootstrap.cli import main
from courier.core.codec import MISSING_BODY
from courier.core.codec import EnvelopeCodec
from courier.core.models.envelope import Envelope
from courier.core.models.stamps import BusNameStamp, ReceivedStamp
from courier.infra.msgpack_serializer import MsgPackSerializer
from tests.fake.messages import DummyMessage, DummyStamp
from tests.helpers import b64_frame, pack_object


@pytest.fixture
def frame_file(tmp_path):
    def write(frame: dict):
        file = tmp_path / "frame.json"
        file.write_text(json.dumps(frame))
        return str(file)

    return write


@pytest.fixture
def encoded():
    codec = EnvelopeCodec(MsgPackSerializer())
    envelope = Envelope(DummyMessage("Hello"), (
        BusNameStamp("command.bus"),
        ReceivedStamp("async"),
        DummyStamp(3),
    ))
    return codec.encode(envelope)


@pytest.mark.it
def test_decode_prints_envelope(frame_file, encoded):
    out = io.StringIO()

    code = main(["--scan", "tests.fake", "decode", frame_file(encoded)], out=out)

    assert code == 0
    lines = out.getvalue().splitlines()
    assert lines[0] == "message: tests.fake.messages.DummyMessage"
    assert "DummyMessage(message='Hello')" in lines[1]
    assert lines[2] == "stamps: 2"
    assert "BusNameStamp(bus_name='command.bus')" in lines[3]
    assert "DummyStamp(value=3)" in lines[4]


@pytest.mark.it
def test_decode_reports_failures(frame_file, capsys):
    out = io.StringIO()

    code = main(["decode", frame_file({"body": '{"message": "bar"}'})], out=out)

    assert code == 1
    assert out.getvalue() == ""
    assert "Could not decode" in capsys.readouterr().err


@pytest.mark.it
def test_decode_missing_body(frame_file, capsys):
    code = main(["decode", frame_file({"headers": {}})], out=io.StringIO())

    assert code == 1
    assert 'should have at least a "body"' in capsys.readouterr().err


@pytest.mark.it
def test_unreadable_frame(tmp_path, capsys):
    file = tmp_path / "frame.json"
    file.write_text("not json")

    code = main(["decode", str(file)], out=io.StringIO())

    assert code == 2
    assert "cannot read frame" in capsys.readouterr().err


@pytest.mark.it
def test_inspect_lists_types(frame_file, encoded):
    out = io.StringIO()

    code = main(["inspect", frame_file(encoded)], out=out)

    assert code == 0
    text = out.getvalue()
    assert "encoding: base64.v1" in text
    assert "courier.envelope (registered)" in text
    assert "courier.stamp.bus_name (registered)" in text
    assert "tests.DummyMessage (registered)" in text
    assert "courier.stamp.received" not in text


@pytest.mark.it
def test_inspect_flags_unknown_types(frame_file):
    raw = msgpack.packb(pack_object("ReceivedSt0mp", {}))
    out = io.StringIO()

    code = main(["inspect", frame_file(b64_frame(raw))], out=out)

    assert code == 0
    assert "ReceivedSt0mp (unknown)" in out.getvalue()


@pytest.mark.it
@pytest.mark.parametrize("command", ["decode", "inspect"])
def test_missing_body_reported_the_same_way(frame_file, capsys, command):
    code = main([command, frame_file({"headers": {}})], out=io.StringIO())

    assert code == 1
    assert capsys.readouterr().err.strip().splitlines()[-1] == f"error: {MISSING_BODY}"


@pytest.mark.it
def test_inspect_out_of_range_timestamp(frame_file, capsys):
    raw = b"\xc7\x0c\xff" + struct.pack(">Iq", 0, -2**62)

    code = main(["inspect", frame_file(b64_frame(raw))], out=io.StringIO())

    assert code == 1
    assert "OverflowError" in capsys.readouterr().err
