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
import dataclasses
import enum
from typing import Optional

MAX_OCCUPANTS = 2


class SessionPhase(enum.Enum):
    EMPTY = 0
    HALF = 1
    FULL = 2


@dataclasses.dataclass
class Occupant:
    connection: object
    display_name: str
    slot: int  # 1-based join position, display only


class SessionState:

    def __init__(self, code: str):
        self.code: str = code
        self.epoch: int = 0
        self.occupants: list[Occupant] = list()
        self.monitor: Optional[object] = None

        self.shutdown_event = asyncio.Event()

    @property
    def phase(self) -> SessionPhase:
        return SessionPhase(len(self.occupants))

    @property
    def is_full(self) -> bool:
        return len(self.occupants) >= MAX_OCCUPANTS

    @property
    def names(self) -> list[str]:
        return [occupant.display_name for occupant in self.occupants]

    def occupant_for(self, connection) -> Optional[Occupant]:
        for occupant in self.occupants:
            if occupant.connection is connection:
                return occupant
        return None

    def counterpart_of(self, occupant: Occupant) -> Optional[Occupant]:
        for other in self.occupants:
            if other is not occupant:
                return other
        return None

    def add_occupant(self, connection, display_name: str) -> Occupant:
        if self.is_full:
            raise ValueError("Session is full")
        occupant = Occupant(connection=connection, display_name=display_name, slot=len(self.occupants) + 1)
        self.occupants.append(occupant)
        return occupant

    def remove_occupant(self, occupant: Occupant) -> None:
        self.occupants.remove(occupant)

    def reset(self, new_code: str) -> list[Occupant]:
        """Clear both slots and start a new epoch under ``new_code``. Returns the dropped occupants."""
        dropped = self.occupants
        self.occupants = list()
        self.code = new_code
        self.epoch += 1
        return dropped
