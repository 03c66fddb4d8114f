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

import websockets
from websockets.asyncio.server import serve, ServerConnection
from websockets.protocol import State as WebsocketState

from message_router import MessageRouter
from protocol import ProtocolError, parse_frame
from server_data import SessionState
from session_manager import SessionManager
from static_pages import StaticPages


class WebsocketServer:

    def __init__(self, config, data: SessionState, manager: SessionManager, router: MessageRouter,
                 static_pages: StaticPages):
        self._config = config
        self._data = data
        self._manager = manager
        self._router = router
        self._static_pages = static_pages
        self._websocket_server = serve(
            self.handler,
            self._config["server"]["host"] or None,
            int(self._config["server"]["port"]),
            process_request=self._static_pages.process_request,
            max_size=self._config["websocket"]["max_size"],
            close_timeout=self._config["websocket"]["close_timeout"],
        )

    async def handler(self, websocket: ServerConnection):
        logging.debug(f"New websocket connection from {websocket.remote_address}")
        shutdown_wait_task = asyncio.create_task(self._data.shutdown_event.wait())
        try:
            while True:
                receive_task = asyncio.create_task(websocket.recv())
                done, pending = await asyncio.wait(
                    [receive_task, shutdown_wait_task],
                    return_when=asyncio.FIRST_COMPLETED
                )

                # shutdown case, participants must hear about it before this connection closes
                if self._data.shutdown_event.is_set():
                    receive_task.cancel()
                    await self._manager.shutdown()
                    return

                message = receive_task.result()
                await self._parse_message(websocket, message)

                if websocket.state in (WebsocketState.CLOSING, WebsocketState.CLOSED):
                    break
        except websockets.exceptions.ConnectionClosed:
            logging.debug(f"Websocket connection closed")
        finally:
            shutdown_wait_task.cancel()

        await self._manager.disconnected(websocket)

    async def _parse_message(self, websocket: ServerConnection, message):
        try:
            frame = parse_frame(message)
            logging.debug(f"Received {frame['type']} frame")
            await self._router.dispatch(websocket, frame)
        except ProtocolError as e:
            logging.warning(f"Dropping frame: {e}")

    async def __aenter__(self):
        if self._websocket_server is not None:
            logging.debug(f"Starting websocket server")
            return await self._websocket_server.__aenter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._websocket_server is not None:
            logging.debug(f"Stopping websocket server")
            return await self._websocket_server.__aexit__(exc_type, exc_val, exc_tb)
