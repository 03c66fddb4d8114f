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

import asyncio
import logging
from typing import Optional

import websockets
from websockets.protocol import State as WebsocketState

import protocol
from connection_registry import ConnectionRegistry, Role, MONITOR
from protocol import ProtocolError
from server_data import SessionState, SessionPhase, Occupant
from session_code import CodeGenerator, codes_match

DEFAULT_DISPLAY_NAME = "Anonymous"
MAX_DISPLAY_NAME_LENGTH = 64


class Outbox:

    def __init__(self):
        self.frames: list[tuple[object, dict]] = list()
        self.closing: list[object] = list()

    def send(self, connection, frame: dict):
        if connection is not None:
            self.frames.append((connection, frame))

    def close(self, connection):
        if connection is not None:
            self.closing.append(connection)


class SessionManager:
    """
    Every change to the session and the registry happens under ``self._lock``.
    Handlers collect outgoing frames into an outbox while holding the lock, and
    send them once it is released.
    """

    def __init__(self, data: SessionState, registry: ConnectionRegistry, code_generator: CodeGenerator,
                 default_display_name: str = DEFAULT_DISPLAY_NAME,
                 max_display_name_length: int = MAX_DISPLAY_NAME_LENGTH):
        self._data = data
        self._registry = registry
        self._code_generator = code_generator
        self._default_display_name = default_display_name
        self._max_display_name_length = max_display_name_length
        self._lock = asyncio.Lock()
        self._shutting_down = False

    @property
    def data(self) -> SessionState:
        return self._data

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    async def monitor_attached(self, connection, frame: Optional[dict] = None):
        outbox = Outbox()
        async with self._lock:
            role = self._registry.role_of(connection)
            if role.is_occupant:
                raise ProtocolError(f"Connection holding {role} tried to attach as monitor; ignored")

            previous = self._registry.holder_of(MONITOR)
            if previous is not None and previous is not connection:
                # stale monitor, dropped without notice
                self._registry.release(previous)
                logging.info("Replacing previous monitor")

            self._data.monitor = connection
            self._registry.assign(connection, MONITOR)
            outbox.send(connection, protocol.code_announce(self._data.code))
            outbox.send(connection, protocol.status(self._data.names))
            logging.info(f"Monitor attached. Code: {self._data.code}")

        await self._flush(outbox)

    async def join_requested(self, connection, frame: dict):
        frame = protocol.validate(protocol.JOIN_SCHEMA, frame)
        outbox = Outbox()
        async with self._lock:
            role = self._registry.role_of(connection)
            if role.is_assigned:
                raise ProtocolError(f"Connection already holds role {role}; join ignored")

            if not codes_match(frame.get("code"), self._data.code):
                outbox.send(connection, protocol.join_rejected(protocol.INVALID_CODE))
                logging.info("Join rejected: invalid code")
            elif self._data.is_full:
                outbox.send(connection, protocol.join_rejected(protocol.SESSION_FULL))
                logging.info("Join rejected: session full")
            else:
                self._admit(connection, frame.get("displayName"), outbox)

        await self._flush(outbox)

    def _admit(self, connection, display_name, outbox: Outbox):
        occupant = self._data.add_occupant(connection, self._clean_display_name(display_name))
        self._registry.assign(connection, Role.occupant(occupant.slot))
        logging.info(f"Occupant {occupant.slot} ({occupant.display_name}) joined")

        counterpart = self._data.counterpart_of(occupant)
        if counterpart is None:
            outbox.send(connection, protocol.join_accepted(occupant.slot))
            outbox.send(self._data.monitor, protocol.status(self._data.names))
            return

        outbox.send(connection, protocol.join_accepted(occupant.slot, counterpart.display_name))
        outbox.send(counterpart.connection, protocol.counterpart_joined(occupant.display_name))
        outbox.send(self._data.monitor, protocol.status(self._data.names))
        for paired in self._data.occupants:
            outbox.send(paired.connection, protocol.chat_ready())
        logging.info("Both occupants connected. Chat session ready.")

    def _clean_display_name(self, display_name) -> str:
        if not isinstance(display_name, str):
            return self._default_display_name
        display_name = display_name.strip()[:self._max_display_name_length]
        return display_name or self._default_display_name

    async def relay(self, connection, frame: dict):
        frame = protocol.validate(protocol.CHAT_SCHEMA, frame)
        outbox = Outbox()
        async with self._lock:
            sender = self._data.occupant_for(connection)
            if sender is None:
                logging.info("Chat frame from a connection that is not an occupant; dropped")
                return
            if self._data.phase is not SessionPhase.FULL:
                logging.info(f"Cannot relay message from occupant {sender.slot}: counterpart not available")
                return

            receiver = self._data.counterpart_of(sender)
            outbox.send(receiver.connection, protocol.chat_relay(frame["message"], sender.display_name))
            logging.debug(f"Relaying message from occupant {sender.slot} to occupant {receiver.slot}")

        await self._flush(outbox)

    async def leave_requested(self, connection, frame: Optional[dict] = None):
        await self.disconnected(connection)

    async def disconnected(self, connection):
        outbox = Outbox()
        async with self._lock:
            if self._shutting_down:
                return
            role = self._registry.release(connection)
            if role.is_monitor:
                if self._data.monitor is connection:
                    self._data.monitor = None
                logging.info("Monitor disconnected")
            elif role.is_occupant:
                occupant = self._data.occupant_for(connection)
                if occupant is not None:
                    self._occupant_left(occupant, outbox)
            else:
                logging.debug("Unassigned connection disconnected")

        await self._flush(outbox)

    def _occupant_left(self, occupant: Occupant, outbox: Outbox):
        logging.info(f"Occupant {occupant.slot} ({occupant.display_name}) disconnected")
        if self._data.phase is not SessionPhase.FULL:
            self._data.remove_occupant(occupant)
            outbox.send(self._data.monitor, protocol.status(self._data.names))
            return

        self._teardown(occupant, outbox)

    def _teardown(self, leaving: Occupant, outbox: Outbox):
        for survivor in self._data.reset(self._code_generator.generate()):
            if survivor is leaving:
                continue
            self._registry.release(survivor.connection)
            outbox.send(survivor.connection, protocol.session_ended(protocol.COUNTERPART_DISCONNECTED))
            outbox.close(survivor.connection)

        outbox.send(self._data.monitor, protocol.code_announce(self._data.code))
        outbox.send(self._data.monitor, protocol.status(self._data.names))
        logging.info(f"Session ended. New session code: {self._data.code} (epoch {self._data.epoch})")

    async def shutdown(self):
        """Notify and close every participant. Later callers wait until the first one is done."""
        outbox = Outbox()
        async with self._lock:
            if self._shutting_down:
                return
            self._shutting_down = True
            connections = [occupant.connection for occupant in self._data.occupants]
            if self._data.monitor is not None:
                connections.append(self._data.monitor)
            for connection in connections:
                outbox.send(connection, protocol.server_shutdown())
                outbox.close(connection)
            logging.info(f"Notifying {len(self._registry)} connection(s) of shutdown")

            await self._flush(outbox)

    @staticmethod
    def is_open(connection) -> bool:
        return connection is not None and connection.state is WebsocketState.OPEN

    async def notify(self, connection, frame: dict) -> bool:
        if not self.is_open(connection):
            logging.debug(f"Wanted to send {frame['type']} to a connection that is not open")
            return False
        try:
            await connection.send(protocol.encode(frame))
        except websockets.exceptions.ConnectionClosed:
            logging.debug(f"Connection closed while sending {frame['type']}")
            return False
        return True

    async def _flush(self, outbox: Outbox):
        for connection, frame in outbox.frames:
            await self.notify(connection, frame)
        for connection in outbox.closing:
            await connection.close()
