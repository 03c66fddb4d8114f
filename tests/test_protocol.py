import json

import pytest

import protocol
from protocol import ProtocolError, parse_frame


def test_parse_frame_accepts_objects_with_type():
    assert parse_frame('{"type": "chat", "message": "hi"}') == {"type": "chat", "message": "hi"}


@pytest.mark.parametrize("message", [
    b'{"type": "chat"}',
    "not json",
    "[1, 2]",
    "{}",
    '{"type": 7}',
])
def test_parse_frame_rejects_malformed_frames(message):
    with pytest.raises(ProtocolError):
        parse_frame(message)


def test_join_schema_leaves_code_and_name_to_admission():
    frame = protocol.validate(protocol.JOIN_SCHEMA, {"type": "join", "code": 7, "displayName": ["A"]})
    assert frame["code"] == 7
    with pytest.raises(ProtocolError):
        protocol.validate(protocol.JOIN_SCHEMA, {"type": "chat", "code": "SCP-000000"})
    frame = protocol.validate(protocol.JOIN_SCHEMA, {"type": "join", "code": "SCP-000000", "extra": 1})
    assert frame["code"] == "SCP-000000"


def test_chat_schema_requires_message():
    with pytest.raises(ProtocolError):
        protocol.validate(protocol.CHAT_SCHEMA, {"type": "chat"})
    assert protocol.validate(protocol.CHAT_SCHEMA, {"type": "chat", "message": None})["message"] is None


def test_join_accepted_frames():
    assert protocol.join_accepted(1) == {"type": "join-accepted", "waitingForOther": True, "slot": 1}
    assert protocol.join_accepted(2, "Alice") == {
        "type": "join-accepted", "waitingForOther": False, "otherName": "Alice", "slot": 2,
    }


def test_status_frame_copies_names():
    names = ["Alice"]
    frame = protocol.status(names)
    names.append("Bob")
    assert frame == {"type": "status", "connectedCount": 1, "names": ["Alice"], "max": 2}


def test_encode_produces_json_text():
    assert json.loads(protocol.encode(protocol.session_ended())) == {
        "type": "session-ended", "reason": "COUNTERPART_DISCONNECTED",
    }
