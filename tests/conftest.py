import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
import websockets

from litclient.client import LitClient
from shared.config import ClientConfig, RPC_SUBPROTOCOL


class NodeError(Exception):
    """Raised by a FakeLitNode handler to answer with a non-null `error`."""

    def __init__(self, error: Any) -> None:
        super().__init__(error)
        self.error = error


class FakeLitNode:
    """
    In-process stand-in for a node's RPC websocket.

    Requests are answered by `handlers[method](payload)`; a handler raising
    NodeError answers with that error value. With `hold = True` requests are
    only recorded and the test answers them itself via `respond()`.
    """

    def __init__(self, handlers: Optional[Dict[str, Callable[[Any], Any]]] = None) -> None:
        self.handlers: Dict[str, Callable[[Any], Any]] = handlers or {}
        self.requests: List[Dict[str, Any]] = []
        self.held: List[Tuple[Any, Dict[str, Any]]] = []
        self.hold = False
        self.connections: List[Any] = []
        self.handshakes: List[Dict[str, Optional[str]]] = []
        self.port: Optional[int] = None
        self._server = None

    def config(self, **overrides: Any) -> ClientConfig:
        values = {"host": "127.0.0.1", "rpc_port": self.port, "ping_interval": None}
        values.update(overrides)
        return ClientConfig(**values)

    def methods(self) -> List[str]:
        return [request["method"] for request in self.requests]

    async def start(self) -> None:
        self._server = await websockets.serve(self._handle, "127.0.0.1", 0, subprotocols=[RPC_SUBPROTOCOL])
        self.port = next(iter(self._server.sockets)).getsockname()[1]

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    async def drop_connections(self) -> None:
        for websocket in list(self.connections):
            await websocket.close(code=1001)

    async def respond(self, request_id: int, result: Any = None, error: Any = None) -> None:
        for index, (websocket, request) in enumerate(self.held):
            if request["id"] == request_id:
                del self.held[index]
                await websocket.send(json.dumps({"id": request_id, "error": error, "result": result}))
                return
        raise AssertionError(f"no held request with id {request_id}")

    async def send_raw(self, text: str) -> None:
        for websocket in self.connections:
            await websocket.send(text)

    async def _handle(self, websocket) -> None:
        self.connections.append(websocket)
        self.handshakes.append({
            "path": websocket.request.path,
            "origin": websocket.request.headers.get("Origin"),
            "subprotocol": websocket.subprotocol,
        })
        try:
            async for raw in websocket:
                request = json.loads(raw)
                self.requests.append(request)
                if self.hold:
                    self.held.append((websocket, request))
                    continue
                await websocket.send(json.dumps(self._answer(request)))
        except websockets.exceptions.ConnectionClosed:
            pass
        finally:
            self.connections.remove(websocket)

    def _answer(self, request: Dict[str, Any]) -> Dict[str, Any]:
        handler = self.handlers.get(request["method"])
        if handler is None:
            return {"id": request["id"], "error": f"rpc: can't find method {request['method']}", "result": None}
        try:
            return {"id": request["id"], "error": None, "result": handler(request["params"][0])}
        except NodeError as e:
            return {"id": request["id"], "error": e.error, "result": None}


class DummyWebSocket:
    """Transport double for dispatcher tests that need no real socket."""

    def __init__(self, fail_with: Optional[BaseException] = None,
                 close_fails_with: Optional[BaseException] = None) -> None:
        self.sent_messages: List[str] = []
        self.closed = False
        self.fail_with = fail_with
        self.close_fails_with = close_fails_with

    async def send(self, data: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent_messages.append(data)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self.close_fails_with is not None:
            raise self.close_fails_with
        self.closed = True

    def sent(self) -> List[Dict[str, Any]]:
        return [json.loads(message) for message in self.sent_messages]


async def wait_for(predicate: Callable[[], bool], timeout: float = 3.0) -> bool:
    loop = asyncio.get_running_loop()
    end = loop.time() + timeout
    while loop.time() < end:
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return predicate()


def response(request_id: int, result: Any = None, error: Any = None) -> str:
    return json.dumps({"id": request_id, "error": error, "result": result})


@pytest.fixture
def open_connection():
    """A ConnectionManager marked open over a DummyWebSocket."""
    from litclient.connection import ConnectionManager
    from litclient.state import ConnectionState

    def factory(websocket: Optional[DummyWebSocket] = None) -> ConnectionManager:
        connection = ConnectionManager()
        connection.websocket = websocket or DummyWebSocket()
        connection.state = ConnectionState.OPEN
        return connection

    return factory


@pytest_asyncio.fixture
async def node():
    fake = FakeLitNode()
    await fake.start()
    yield fake
    await fake.stop()


@pytest_asyncio.fixture
async def lit(node):
    client = LitClient(node.config())
    await client.open()
    yield client
    if client.connection.is_open:
        await client.close()
