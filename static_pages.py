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

import email.utils
import logging
import mimetypes
from http import HTTPStatus
from pathlib import Path
from typing import Optional

import aiofiles
from websockets.datastructures import Headers
from websockets.http11 import Request, Response

PAGE_ROUTES = {
    "/": "index.html",
    "/server": "server.html",
    "/client": "client.html",
}


class StaticPages:
    """
    Answers plain HTTP requests on the websocket port with files from ``public_dir``.

    Plugged into the websockets server as its ``process_request`` hook; upgrade
    requests fall through to the websocket handler.
    """

    def __init__(self, public_dir: Path):
        self._public_dir = Path(public_dir).resolve()

    def resolve(self, path: str) -> Optional[Path]:
        path = path.split("?", 1)[0].split("#", 1)[0]
        relative = PAGE_ROUTES.get(path, path.lstrip("/"))
        if not relative:
            return None
        candidate = (self._public_dir / relative).resolve()
        if not candidate.is_relative_to(self._public_dir) or not candidate.is_file():
            return None
        return candidate

    async def process_request(self, connection, request: Request) -> Optional[Response]:
        if request.headers.get("Upgrade", "").lower() == "websocket":
            return None

        file_path = self.resolve(request.path)
        if file_path is None:
            logging.debug(f"No static file for {request.path}")
            return self.response(HTTPStatus.NOT_FOUND, b"Not Found\n", "text/plain; charset=utf-8")

        async with aiofiles.open(file_path, "rb") as static_file:
            body = await static_file.read()
        content_type, _ = mimetypes.guess_type(file_path.name)
        return self.response(HTTPStatus.OK, body, content_type or "application/octet-stream")

    @staticmethod
    def response(status: HTTPStatus, body: bytes, content_type: str) -> Response:
        headers = Headers()
        headers["Date"] = email.utils.formatdate(usegmt=True)
        headers["Connection"] = "close"
        headers["Content-Length"] = str(len(body))
        headers["Content-Type"] = content_type
        return Response(status.value, status.phrase, headers, body)
