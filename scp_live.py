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
import os
import signal
from pathlib import Path

from config import Config, ConfigurationLoadError
from connection_registry import ConnectionRegistry
from logger import setup_logging
from message_router import MessageRouter
from server_data import SessionState
from session_code import CodeGenerator
from session_manager import SessionManager
from static_pages import StaticPages
from websocket_server import WebsocketServer


class ScpLive:

    def __init__(self, config):
        self._config = config
        session_config = self._config["session"]
        self._code_generator = CodeGenerator(session_config["code_prefix"], session_config["code_bytes"])
        self._data = SessionState(self._code_generator.generate())
        self._registry = ConnectionRegistry()
        self._manager = SessionManager(
            self._data, self._registry, self._code_generator,
            default_display_name=session_config["default_display_name"],
            max_display_name_length=session_config["max_display_name_length"],
        )
        self._router = MessageRouter(self._manager)
        self._static_pages = StaticPages(Path(self._config["server"]["public_dir"]))
        self._websocket_server = WebsocketServer(
            self._config, self._data, self._manager, self._router, self._static_pages)

    def request_shutdown(self):
        logging.info("Shutdown requested ...")
        self._data.shutdown_event.set()

    async def begin(self):
        logging.info("Starting SCP Live Server")
        async with self._websocket_server:
            logging.info(f"Listening on port {self._config['server']['port']}")
            logging.info(f"Initial session code: {self._data.code}")
            try:
                logging.info("Ctrl^C to quit")
                await self._data.shutdown_event.wait()
            except asyncio.CancelledError:
                logging.info("Cancelled ...")
            finally:
                logging.info("Stopping Server ...")
                await self._manager.shutdown()


async def main():
    logging.info("Starting SCP Live ...")

    config = Config(os.environ.get("SCP_LIVE_CONFIG", "./config.toml"))
    loop = asyncio.get_running_loop()

    try:
        await config.initialize()

        scp_live = ScpLive(config.config)
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, scp_live.request_shutdown)
        await scp_live.begin()
    except ConfigurationLoadError:
        logging.error("Could not load configuration. Exiting")
        return
    except OSError as e:
        logging.exception(e)
        logging.error("Could not start the server. Exiting")
        return
    logging.info("Server closed")


def run():
    setup_logging()
    asyncio.run(main())


if __name__ == "__main__":
    run()
