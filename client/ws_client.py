from __future__ import annotations
from typing import Optional, Callable, Awaitable, Union

import websockets
from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

from shared.log import get_logger

logger = get_logger(__name__)


FrameHandler = Callable[[Union[str, bytes]], Awaitable[None]]


class SendError(Exception):
    """Raised when a frame cannot be handed to the server (not connected or closed)."""
    pass


class ClientSession:
    """
    One persistent WebSocket to the chat server.

    Moves text frames only; encoding and decoding belong to the caller.
    There is no reconnection: once the socket closes, recv_loop returns.
    """

    def __init__(self, server_ws_url: str, *, ping_interval: Optional[float] = 15,
                 ping_timeout: Optional[float] = 45) -> None:
        self.server_ws_url = server_ws_url
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self.websocket: Optional[websockets.ClientConnection] = None

    @property
    def connected(self) -> bool:
        return self.websocket is not None and self.websocket.state is State.OPEN

    async def connect(self) -> None:
        """Connect to the chat server via WebSocket"""
        self.websocket = await websockets.connect(
            self.server_ws_url,
            ping_interval=self.ping_interval,
            ping_timeout=self.ping_timeout,
        )
        logger.info("Connected", extra={"server_url": self.server_ws_url})

    async def send(self, text: str) -> None:
        """Send one text frame, raising SendError when the channel is unavailable."""
        if self.websocket is None:
            raise SendError("not connected")
        try:
            await self.websocket.send(text)
        except ConnectionClosed as e:
            raise SendError(f"connection closed: {e}") from e

    async def recv_loop(self, handler: FrameHandler) -> None:
        """
        Feed every inbound frame to `handler`, one at a time. Binary frames are
        passed through undecoded.

        A frame is fully handled before the next one is read. Handler
        failures are logged and do not end the loop.
        """
        assert self.websocket is not None
        try:
            async for raw in self.websocket:
                try:
                    await handler(raw)
                except Exception as e:
                    logger.error("Failed to process inbound frame: %s", e)
        except ConnectionClosed as e:
            logger.warning("Connection lost: %s", e, extra={"server_url": self.server_ws_url})
        logger.info("Disconnected", extra={"server_url": self.server_ws_url})

    async def close(self) -> None:
        if self.websocket:
            await self.websocket.close(code=1000)
