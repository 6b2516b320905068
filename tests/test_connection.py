import asyncio

import pytest

from conftest import DummyWebSocket, FakeLitNode, wait_for


@pytest.mark.asyncio
async def test_open_uses_fixed_path_origin_and_subprotocol(node):
    from litclient.connection import ConnectionManager
    from litclient.state import ConnectionState

    connection = ConnectionManager(node.config())
    assert connection.state is ConnectionState.DISCONNECTED

    await connection.open()
    assert connection.state is ConnectionState.OPEN
    assert connection.is_open
    assert await wait_for(lambda: node.handshakes)
    assert node.handshakes[0] == {"path": "/ws", "origin": "http://localhost/", "subprotocol": "echo-protocol"}

    await connection.close()
    assert connection.state is ConnectionState.CLOSED
    assert not connection.is_open


@pytest.mark.asyncio
async def test_close_before_open_fails():
    from litclient.connection import ConnectionManager
    from shared.errors import ConnectionNotOpenError

    with pytest.raises(ConnectionNotOpenError, match="Connection not open"):
        await ConnectionManager().close()


@pytest.mark.asyncio
async def test_failed_open_returns_to_disconnected():
    from litclient.connection import ConnectionManager
    from litclient.state import ConnectionState

    unused = FakeLitNode()
    await unused.start()
    config = unused.config()
    await unused.stop()

    connection = ConnectionManager(config)
    with pytest.raises(OSError):
        await connection.open()
    assert connection.state is ConnectionState.DISCONNECTED
    assert connection.websocket is None


@pytest.mark.asyncio
async def test_client_round_trip_over_websocket(node, lit):
    node.handlers["LitRPC.Balance"] = lambda payload: {"Balances": [{"CoinType": 1, "TxoTotal": 5000}]}

    assert await lit.call("LitRPC.Balance", {}) == {"Balances": [{"CoinType": 1, "TxoTotal": 5000}]}
    assert node.requests == [{"method": "LitRPC.Balance", "params": [{}], "id": 0}]


@pytest.mark.asyncio
async def test_responses_out_of_order_reach_the_right_caller(node, lit):
    node.hold = True

    call_a = asyncio.create_task(lit.call("LitRPC.A", {"x": "a"}))
    call_b = asyncio.create_task(lit.call("LitRPC.B", {"x": "b"}))
    assert await wait_for(lambda: len(node.held) == 2)
    assert [request["id"] for request in node.requests] == [0, 1]

    await node.respond(1, result="result-b")
    assert await call_b == "result-b"
    assert not call_a.done()

    await node.respond(0, result="result-a")
    assert await call_a == "result-a"


@pytest.mark.asyncio
async def test_stray_and_malformed_frames_do_not_disturb_calls(node, lit):
    node.hold = True

    task = asyncio.create_task(lit.call("LitRPC.A", {}))
    assert await wait_for(lambda: node.held)

    await node.send_raw('{"id": 999, "error": null, "result": "stray"}')
    await node.send_raw("garbage")
    await node.send_raw('{"id": 0.5}')
    await asyncio.sleep(0.05)
    assert not task.done()

    await node.respond(0, result="ok")
    assert await task == "ok"


@pytest.mark.asyncio
async def test_call_before_open_leaves_later_calls_unaffected(node):
    from litclient.client import LitClient
    from shared.errors import ConnectionNotOpenError

    node.handlers["LitRPC.GetFee"] = lambda payload: {"CurrentFee": 80}
    client = LitClient(node.config())

    with pytest.raises(ConnectionNotOpenError):
        await client.get_fee(1)
    assert client.dispatcher.pending_ids == []

    await client.open()
    try:
        assert await client.get_fee(1) == 80
        assert node.requests[0]["id"] == 0
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_node_dropping_connection_fails_pending_calls(node, lit):
    from litclient.state import ConnectionState
    from shared.errors import ConnectionLostError, ConnectionNotOpenError

    node.hold = True
    task = asyncio.create_task(lit.call("LitRPC.A", {}))
    assert await wait_for(lambda: node.held)

    await node.drop_connections()

    with pytest.raises(ConnectionLostError):
        await asyncio.wait_for(task, 2.0)
    assert lit.state is ConnectionState.CLOSED
    assert lit.dispatcher.pending_ids == []

    with pytest.raises(ConnectionNotOpenError):
        await lit.call("LitRPC.A", {})


@pytest.mark.asyncio
async def test_reopen_after_close(node):
    from litclient.client import LitClient
    from litclient.state import ConnectionState

    node.handlers["LitRPC.GetFee"] = lambda payload: {"CurrentFee": payload["CoinType"]}
    client = LitClient(node.config())

    await client.open()
    assert await client.get_fee(1) == 1
    await client.close()
    assert client.state is ConnectionState.CLOSED

    await client.open()
    try:
        assert await client.get_fee(2) == 2
        # ids keep counting across sessions of the same client
        assert [request["id"] for request in node.requests] == [0, 1]
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_failed_close_keeps_connection_usable(open_connection):
    from litclient.dispatcher import RequestDispatcher
    from litclient.state import ConnectionState

    websocket = DummyWebSocket(close_fails_with=OSError("socket busy"))
    connection = open_connection(websocket)
    dispatcher = RequestDispatcher(connection)

    with pytest.raises(OSError, match="socket busy"):
        await connection.close()

    assert connection.state is ConnectionState.OPEN
    assert connection.is_open

    task = asyncio.create_task(dispatcher.call("LitRPC.GetFee", {"CoinType": 1}))
    assert await wait_for(lambda: websocket.sent_messages)
    dispatcher.handle_frame('{"id": 0, "error": null, "result": {"CurrentFee": 80}}')
    assert await task == {"CurrentFee": 80}
