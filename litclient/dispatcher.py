from __future__ import annotations
import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from litclient.connection import ConnectionManager
from shared.envelope import RequestEnvelope, ResponseEnvelope
from shared.errors import ConnectionLostError, ConnectionNotOpenError, RemoteError, RequestTimeoutError
from shared.log import get_logger, log_rpc_message

logger = get_logger(__name__)


@dataclass
class PendingCall:
    """An in-flight request waiting for the response carrying its id."""
    request_id: int
    method: str
    future: asyncio.Future
    sent_at: float = field(default_factory=time.monotonic)


class RequestDispatcher:
    """
    Correlates requests and responses over the one shared connection.

    Ids come from a counter starting at 0 and are never reused. Allocating an
    id and registering its PendingCall happen before the first await in
    call(), so concurrent callers on the event loop cannot interleave there.
    All state here must only be touched from the loop's thread.
    """

    def __init__(self, connection: ConnectionManager, default_timeout: Optional[float] = None) -> None:
        self.connection = connection
        self.default_timeout = default_timeout
        self._next_id = 0
        self._pending: Dict[int, PendingCall] = {}
        connection.on_frame(self.handle_frame)
        connection.on_close(self.fail_all)

    @property
    def next_id(self) -> int:
        return self._next_id

    @property
    def pending_ids(self) -> List[int]:
        return sorted(self._pending)

    async def call(self, method: str, payload: Any = None, *, timeout: Optional[float] = None) -> Any:
        """
        Send `method` with `payload` and wait for the matching response.

        Returns the response's `result`. Raises RemoteError carrying the
        response's `error` value unchanged, ConnectionNotOpenError before
        anything is sent if the connection is not open, and
        RequestTimeoutError if `timeout` (or the default timeout) elapses.
        """
        if not self.connection.is_open:
            raise ConnectionNotOpenError()

        request_id = self._next_id
        self._next_id += 1
        pending = PendingCall(request_id, method, asyncio.get_running_loop().create_future())
        self._pending[request_id] = pending

        envelope = RequestEnvelope(method=method, payload={} if payload is None else payload, id=request_id)
        try:
            await self.connection.send(envelope.to_json())
        except BaseException:
            self._pending.pop(request_id, None)
            raise
        log_rpc_message(logger, "debug", "Sent request", envelope=envelope.to_dict())

        wait = timeout if timeout is not None else self.default_timeout
        try:
            if wait is None:
                return await pending.future
            return await asyncio.wait_for(pending.future, wait)
        except asyncio.TimeoutError:
            raise RequestTimeoutError(method, request_id, wait) from None
        finally:
            # no-op when the response already removed it
            self._pending.pop(request_id, None)

    def handle_frame(self, raw: str) -> None:
        """Route one inbound frame to the call waiting for its id"""
        response = ResponseEnvelope.from_json(raw)

        pending = self._pending.pop(response.id, None)
        if pending is None:
            # stale, duplicate or foreign id
            logger.debug("Dropping response with no pending call", extra={"request_id": response.id})
            return
        if pending.future.done():
            return

        elapsed_ms = (time.monotonic() - pending.sent_at) * 1000
        log_rpc_message(logger, "debug", f"Received {'error' if response.is_error else 'result'} after {elapsed_ms:.1f}ms",
                        method=pending.method, request_id=response.id)
        if response.is_error:
            pending.future.set_exception(RemoteError(response.error, method=pending.method, request_id=response.id))
        else:
            pending.future.set_result(response.result)

    def fail_all(self, error: Optional[BaseException] = None) -> None:
        """Fail every pending call; used when the transport goes away"""
        if not self._pending:
            return
        pending, self._pending = self._pending, {}
        logger.warning("Failing %d pending call(s): connection closed", len(pending))
        for call in pending.values():
            if call.future.done():
                continue
            exc = ConnectionLostError()
            exc.__cause__ = error
            call.future.set_exception(exc)
