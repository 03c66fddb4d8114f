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

import secrets

DEFAULT_PREFIX = "SCP-"
DEFAULT_SUFFIX_BYTES = 3  # 24 bits
MIN_SUFFIX_BYTES = 3


class CodeGenerator:
    """
    Produces session codes such as ``SCP-4F1A9C``.

    Only one code is live at a time, so codes are not checked against ones
    that already expired.
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX, suffix_bytes: int = DEFAULT_SUFFIX_BYTES):
        if suffix_bytes < MIN_SUFFIX_BYTES:
            raise ValueError(f"suffix_bytes must be at least {MIN_SUFFIX_BYTES}, got {suffix_bytes}")
        self.prefix = prefix
        self.suffix_bytes = suffix_bytes

    def generate(self) -> str:
        return self.prefix + secrets.token_hex(self.suffix_bytes).upper()


def normalize_code(code: str) -> str:
    return code.strip().upper()


def codes_match(candidate, code: str) -> bool:
    if not isinstance(candidate, str):
        return False
    return secrets.compare_digest(normalize_code(candidate), normalize_code(code))
