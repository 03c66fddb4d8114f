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

import dataclasses
import enum
import logging
from typing import Optional


class RoleConflictError(Exception): pass


class RoleKind(enum.Enum):
    UNASSIGNED = "unassigned"
    MONITOR = "monitor"
    OCCUPANT = "occupant"


@dataclasses.dataclass(frozen=True)
class Role:
    kind: RoleKind
    slot: Optional[int] = None  # 1 or 2 for occupants

    @classmethod
    def occupant(cls, slot: int) -> "Role":
        if slot not in (1, 2):
            raise ValueError(f"Occupant slot must be 1 or 2, got {slot}")
        return cls(RoleKind.OCCUPANT, slot)

    @property
    def is_monitor(self) -> bool:
        return self.kind is RoleKind.MONITOR

    @property
    def is_occupant(self) -> bool:
        return self.kind is RoleKind.OCCUPANT

    @property
    def is_assigned(self) -> bool:
        return self.kind is not RoleKind.UNASSIGNED

    def __str__(self):
        if self.is_occupant:
            return f"occupant@{self.slot}"
        return self.kind.value


MONITOR = Role(RoleKind.MONITOR)
UNASSIGNED = Role(RoleKind.UNASSIGNED)


class ConnectionRegistry:
    """
    Maps live connections to their role, and roles back to connections.

    A role other than ``UNASSIGNED`` is held by at most one connection.
    """

    def __init__(self):
        self._roles: dict[object, Role] = dict()
        self._holders: dict[Role, object] = dict()

    def assign(self, connection, role: Role) -> None:
        if not role.is_assigned:
            self.release(connection)
            return

        holder = self._holders.get(role)
        if holder is not None and holder is not connection:
            raise RoleConflictError(f"Role {role} is already held by another connection")

        previous = self._roles.get(connection)
        if previous is not None and previous != role:
            del self._holders[previous]

        self._roles[connection] = role
        self._holders[role] = connection
        logging.debug(f"Assigned role {role} to connection {id(connection):#x}")

    def role_of(self, connection) -> Role:
        return self._roles.get(connection, UNASSIGNED)

    def holder_of(self, role: Role):
        return self._holders.get(role)

    def release(self, connection) -> Role:
        """Forget ``connection``. Returns the role it held; releasing twice is a no-op."""
        role = self._roles.pop(connection, None)
        if role is None:
            return UNASSIGNED
        del self._holders[role]
        logging.debug(f"Released role {role} from connection {id(connection):#x}")
        return role

    def __len__(self):
        return len(self._roles)
