"""Live fan-out of new data points to WebSocket subscribers."""
import asyncio

from starlette.websockets import WebSocketState

from Notify.broadcast import ConnectionManager


class FakeSocket:
    def __init__(self, fail: bool = False):
        self.client_state = WebSocketState.CONNECTING
        self.application_state = WebSocketState.CONNECTING
        self.sent = []
        self.fail = fail

    async def accept(self):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket reset")
        self.sent.append(data)

    async def close(self):
        self.application_state = WebSocketState.DISCONNECTED


def test_broadcast_reaches_every_open_socket() -> None:
    async def scenario():
        manager = ConnectionManager()
        a, b = FakeSocket(), FakeSocket()
        await manager.connect(a)
        await manager.connect(b)
        sent = await manager.broadcast({"id": 1})
        return sent, a.sent, b.sent

    sent, a_got, b_got = asyncio.run(scenario())
    assert sent == 2
    assert a_got == b_got == [{"id": 1}]


def test_closed_and_failing_sockets_are_skipped_and_dropped() -> None:
    async def scenario():
        manager = ConnectionManager()
        ok, closed, broken = FakeSocket(), FakeSocket(), FakeSocket(fail=True)
        for ws in (ok, closed, broken):
            await manager.connect(ws)
        closed.client_state = WebSocketState.DISCONNECTED
        sent = await manager.broadcast({"id": 2})
        return sent, manager.count, ok.sent, closed.sent

    sent, live, ok_got, closed_got = asyncio.run(scenario())
    assert sent == 1
    assert live == 1
    assert ok_got == [{"id": 2}]
    assert closed_got == []


def test_broadcast_with_no_subscribers() -> None:
    assert asyncio.run(ConnectionManager().broadcast({"id": 3})) == 0


def test_close_all_empties_the_manager() -> None:
    async def scenario():
        manager = ConnectionManager()
        ws = FakeSocket()
        await manager.connect(ws)
        await manager.close_all()
        return manager.count, ws.application_state

    count, state = asyncio.run(scenario())
    assert count == 0
    assert state == WebSocketState.DISCONNECTED


def test_two_subscribers_get_the_same_point_and_late_one_gets_no_replay(client, admin_headers) -> None:
    first = {"label": "temp", "value": 21.5, "date": "2024-01-01"}
    second = {"label": "humidity", "value": 40, "date": "2024-01-02T08:30:00"}

    with client.websocket_connect("/ws") as ws1, client.websocket_connect("/ws") as ws2:
        r = client.post("/data", json=first, headers=admin_headers)
        assert r.status_code == 201
        assert ws1.receive_json() == r.json()
        assert ws2.receive_json() == r.json()

        with client.websocket_connect("/ws") as ws3:
            r2 = client.post("/data", json=second, headers=admin_headers)
            assert r2.status_code == 201
            # the late subscriber's first message is the second point, not the first
            assert ws3.receive_json() == r2.json()
            assert ws1.receive_json() == r2.json()
            assert ws2.receive_json() == r2.json()


def test_rejected_create_broadcasts_nothing(client, admin_headers, viewer_headers) -> None:
    point = {"label": "temp", "value": 1, "date": "2024-01-01"}
    with client.websocket_connect("/ws") as ws:
        assert client.post("/data", json=point, headers=viewer_headers).status_code == 403
        r = client.post("/data", json=point, headers=admin_headers)
        assert r.status_code == 201
        assert ws.receive_json() == r.json()
