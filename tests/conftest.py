from __future__ import annotations

import itertools
import json

import pytest
import websockets
from websockets.protocol import State

from connection_registry import ConnectionRegistry
from message_router import MessageRouter
from server_data import SessionState
from session_code import CodeGenerator
from session_manager import SessionManager


class FakeConnection:
    """Stands in for a websockets ServerConnection and records what the server sends."""

    def __init__(self, name: str):
        self.name = name
        self.state = State.OPEN
        self.sent: list[dict] = []
        self.close_calls = 0

    async def send(self, message: str):
        if self.state is not State.OPEN:
            raise websockets.exceptions.ConnectionClosedOK(None, None)
        self.sent.append(json.loads(message))

    async def close(self):
        self.close_calls += 1
        self.state = State.CLOSED

    def frames(self, frame_type: str | None = None) -> list[dict]:
        return [frame for frame in self.sent if frame_type is None or frame["type"] == frame_type]

    def types(self) -> list[str]:
        return [frame["type"] for frame in self.sent]

    def clear(self):
        self.sent.clear()

    def __repr__(self):
        return f"FakeConnection({self.name!r})"


class SequentialCodeGenerator(CodeGenerator):
    def __init__(self):
        super().__init__()
        self._counter = itertools.count()

    def generate(self) -> str:
        return f"{self.prefix}{next(self._counter):06X}"


@pytest.fixture
def code_generator():
    return SequentialCodeGenerator()


@pytest.fixture
def data(code_generator):
    return SessionState(code_generator.generate())


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def manager(data, registry, code_generator):
    return SessionManager(data, registry, code_generator)


@pytest.fixture
def router(manager):
    return MessageRouter(manager)


@pytest.fixture
def connect():
    def _connect(name: str = "conn") -> FakeConnection:
        return FakeConnection(name)

    return _connect
