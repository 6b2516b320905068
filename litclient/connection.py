from __future__ import annotations
import asyncio
from contextlib import suppress
from typing import Callable, List, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from litclient.state import ConnectionState
from shared.config import ClientConfig
from shared.errors import ConnectionNotOpenError
from shared.log import get_logger

logger = get_logger(__name__)


FrameHandler = Callable[[str], None]
CloseListener = Callable[[Optional[BaseException]], None]


class ConnectionManager:
    """
    Owns the single websocket to the node's RPC endpoint.

    Inbound text frames are handed to one frame handler (the dispatcher);
    close listeners are told when the transport goes away, whether that was
    requested through close() or not.
    """

    def __init__(self, config: Optional[ClientConfig] = None) -> None:
        self.config = config or ClientConfig()
        self.state = ConnectionState.DISCONNECTED
        self.websocket: Optional[websockets.ClientConnection] = None
        self._reader: Optional[asyncio.Task] = None
        self._frame_handler: Optional[FrameHandler] = None
        self._close_listeners: List[CloseListener] = []

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN and self.websocket is not None

    def on_frame(self, handler: FrameHandler) -> None:
        self._frame_handler = handler

    def on_close(self, listener: CloseListener) -> None:
        self._close_listeners.append(listener)

    async def open(self) -> None:
        """Connect to the node and start reading frames"""
        if self.is_open:
            # not guarded: the previous socket is simply abandoned
            logger.warning("open() called on an open connection", extra={"host": self._node})

        self._set_state(ConnectionState.CONNECTING)
        try:
            websocket = await websockets.connect(
                self.config.url,
                subprotocols=[self.config.subprotocol],
                origin=self.config.origin,
                ping_interval=self.config.ping_interval,
            )
        except Exception as e:
            logger.error("Failed to connect to %s: %s", self.config.url, e, extra={"host": self._node})
            self._set_state(ConnectionState.DISCONNECTED)
            raise

        self.websocket = websocket
        self._set_state(ConnectionState.OPEN)
        self._reader = asyncio.create_task(self._recv_loop(websocket))

    async def close(self) -> None:
        """Close the connection gracefully and wait for the reader to finish"""
        if self.websocket is None:
            raise ConnectionNotOpenError()

        previous = self.state
        self._set_state(ConnectionState.CLOSING)
        try:
            await self.websocket.close(code=1000)
        except Exception as e:
            logger.error("Error closing connection: %s", e, extra={"host": self._node})
            if self.state is ConnectionState.CLOSING:
                self._set_state(previous)
            raise

        if self._reader is not None:
            with suppress(asyncio.CancelledError):
                await self._reader
        self._set_state(ConnectionState.CLOSED)

    async def send(self, message: str) -> None:
        if not self.is_open:
            raise ConnectionNotOpenError()
        await self.websocket.send(message)

    async def _recv_loop(self, websocket: websockets.ClientConnection) -> None:
        error: Optional[BaseException] = None
        try:
            async for raw in websocket:
                try:
                    if isinstance(raw, bytes):
                        raw = raw.decode('utf-8')
                    if self._frame_handler is not None:
                        self._frame_handler(raw)
                except Exception as e:
                    logger.error("Failed to parse/process inbound frame: %s", e, extra={"host": self._node})
        except ConnectionClosed as e:
            error = e
        finally:
            # a newer open() may have replaced this socket already
            if websocket is self.websocket:
                self._transport_closed(error)

    def _transport_closed(self, error: Optional[BaseException]) -> None:
        if self.state is not ConnectionState.CLOSING:
            logger.warning("Connection to node lost: %s", error or "closed by peer", extra={"host": self._node})
        self._set_state(ConnectionState.CLOSED)
        for listener in list(self._close_listeners):
            listener(error)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self.state:
            return
        logger.info("Connection %s -> %s", self.state.value, state.value, extra={"host": self._node})
        self.state = state

    @property
    def _node(self) -> str:
        return f"{self.config.host}:{self.config.rpc_port}"
