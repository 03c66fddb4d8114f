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
import os
from pathlib import Path

from voluptuous import Schema, Optional, All, Range, Length, Coerce
import voluptuous.error
import aiofiles
import tomlkit
import tomlkit.exceptions

from session_code import DEFAULT_PREFIX, DEFAULT_SUFFIX_BYTES, MIN_SUFFIX_BYTES
from session_manager import DEFAULT_DISPLAY_NAME, MAX_DISPLAY_NAME_LENGTH


class ConfigurationLoadError(Exception): pass


CONFIG_TABLES = ("server", "session", "websocket")


class Config:
    config: dict
    config_opened: bool = False

    def __init__(self, config_location: Path):
        self.config_location = Path(config_location)

        self.config_schema = Schema({
            Optional('server'): {
                Optional('host', default=""): str,
                Optional('port', default=3000): All(Coerce(int), Range(min=0, max=65535)),
                Optional('public_dir', default="./public"): All(str, Length(min=1)),
            },
            Optional('session'): {
                Optional('code_prefix', default=DEFAULT_PREFIX): str,
                Optional('code_bytes', default=DEFAULT_SUFFIX_BYTES): All(int, Range(min=MIN_SUFFIX_BYTES, max=32)),
                Optional('default_display_name', default=DEFAULT_DISPLAY_NAME): All(str, Length(min=1)),
                Optional('max_display_name_length', default=MAX_DISPLAY_NAME_LENGTH): All(int, Range(min=1)),
            },
            Optional('websocket'): {
                Optional('max_size', default=2 ** 16): All(int, Range(min=1)),
                Optional('close_timeout', default=5): All(Coerce(float), Range(min=0)),
            },
        })

    async def initialize(self):
        try:
            async with aiofiles.open(self.config_location, 'r') as config_file:
                file_data = await config_file.read()
                document = tomlkit.parse(file_data).unwrap()
                logging.debug("Loaded Configuration without toml format error")
                for table in CONFIG_TABLES:
                    document.setdefault(table, {})
                logging.debug("Validating against Schema.")
                self.config = self.config_schema(document)
                self.config_opened = True
                logging.debug("Validated against Schema.")
        except FileNotFoundError as e:
            logging.exception(e)
            logging.warning(
                f"Could not find {self.config_location}. Copy from .example/config.toml to {self.config_location}")
            raise ConfigurationLoadError() from e
        except IOError as e:
            logging.exception(e)
            logging.warning(f"Could not open file {self.config_location}")
            raise ConfigurationLoadError() from e
        except tomlkit.exceptions.ParseError as e:
            logging.exception(e)
            logging.warning(f"Configuration in {self.config_location} is invalid")
            raise ConfigurationLoadError() from e
        except voluptuous.error.MultipleInvalid as e:
            logging.exception(e)
            logging.warning(f"Configuration in {self.config_location} does not match expected format")
            logging.warning(f"Issue configuration item: {e.path}")
            raise ConfigurationLoadError() from e

        if "PORT" in os.environ:
            try:
                self.config["server"]["port"] = self.config_schema(
                    {"server": {"port": os.environ["PORT"]}})["server"]["port"]
            except voluptuous.error.MultipleInvalid:
                logging.warning(f"Ignoring invalid PORT environment variable {os.environ['PORT']!r}")

        logging.info(f"Configuration loaded.")
