"""
SCP Live
Copyright (C) 2024 thiccaxe

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published
by the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""

import json

from voluptuous import Schema, Required, Optional, ALLOW_EXTRA
import voluptuous.error

from server_data import MAX_OCCUPANTS

# client -> server
MONITOR_ATTACH = "monitor-attach"
JOIN = "join"
CHAT = "chat"
LEAVE = "leave"

# server -> client
CODE_ANNOUNCE = "code-announce"
STATUS = "status"
JOIN_ACCEPTED = "join-accepted"
JOIN_REJECTED = "join-rejected"
COUNTERPART_JOINED = "counterpart-joined"
CHAT_READY = "chat-ready"
CHAT_RELAY = "chat-relay"
SESSION_ENDED = "session-ended"
SERVER_SHUTDOWN = "server-shutdown"

INVALID_CODE = "INVALID_CODE"
SESSION_FULL = "SESSION_FULL"
COUNTERPART_DISCONNECTED = "COUNTERPART_DISCONNECTED"
SERVER_SHUTTING_DOWN = "SERVER_SHUTDOWN"


class ProtocolError(Exception): pass


FRAME_SCHEMA = Schema({Required("type"): str}, extra=ALLOW_EXTRA)

JOIN_SCHEMA = Schema({
    Required("type"): JOIN,
    Optional("code"): object,
    Optional("displayName"): object,
}, extra=ALLOW_EXTRA)

CHAT_SCHEMA = Schema({
    Required("type"): CHAT,
    Required("message"): object,
}, extra=ALLOW_EXTRA)


def parse_frame(message) -> dict:
    if not isinstance(message, str):
        raise ProtocolError("Binary frames are not supported")
    try:
        frame = json.loads(message)
    except json.JSONDecodeError as e:
        raise ProtocolError("Frame is not valid JSON") from e
    return validate(FRAME_SCHEMA, frame)


def validate(schema: Schema, frame) -> dict:
    try:
        return schema(frame)
    except voluptuous.error.Invalid as e:
        raise ProtocolError(f"Malformed frame: {e}") from e


def encode(frame: dict) -> str:
    return json.dumps(frame)


def code_announce(code: str) -> dict:
    return {"type": CODE_ANNOUNCE, "code": code}


def status(names: list) -> dict:
    return {
        "type": STATUS,
        "connectedCount": len(names),
        "names": list(names),
        "max": MAX_OCCUPANTS,
    }


def join_accepted(slot: int, other_name=None) -> dict:
    frame = {"type": JOIN_ACCEPTED, "waitingForOther": other_name is None, "slot": slot}
    if other_name is not None:
        frame["otherName"] = other_name
    return frame


def join_rejected(reason: str) -> dict:
    return {"type": JOIN_REJECTED, "reason": reason}


def counterpart_joined(other_name: str) -> dict:
    return {"type": COUNTERPART_JOINED, "otherName": other_name}


def chat_ready() -> dict:
    return {"type": CHAT_READY}


def chat_relay(message, sender: str) -> dict:
    return {"type": CHAT_RELAY, "message": message, "sender": sender}


def session_ended(reason: str = COUNTERPART_DISCONNECTED) -> dict:
    return {"type": SESSION_ENDED, "reason": reason}


def server_shutdown(reason: str = SERVER_SHUTTING_DOWN) -> dict:
    return {"type": SERVER_SHUTDOWN, "reason": reason}
