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

import logging
from typing import Awaitable, Callable

import protocol
from session_manager import SessionManager

Handler = Callable[[object, dict], Awaitable[None]]


class MessageRouter:
    """Dispatches a decoded frame to the session manager by its ``type``."""

    def __init__(self, manager: SessionManager):
        self._handlers: dict[str, Handler] = {
            protocol.MONITOR_ATTACH: manager.monitor_attached,
            protocol.JOIN: manager.join_requested,
            protocol.CHAT: manager.relay,
            protocol.LEAVE: manager.leave_requested,
        }

    @property
    def known_types(self) -> frozenset:
        return frozenset(self._handlers)

    async def dispatch(self, connection, frame: dict) -> bool:
        handler = self._handlers.get(frame["type"])
        if handler is None:
            logging.warning(f"Ignoring frame with unknown type {frame['type']!r}")
            return False
        await handler(connection, frame)
        return True
