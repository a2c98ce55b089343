"""End-to-end tests for the notification channel over WebSockets."""

import asyncio

import pytest
from starlette.websockets import WebSocketDisconnect

from conftest import DEV_ORIGIN
from menudigital.defaults import CLOSE_ORIGIN_REJECTED, CLOSE_SERVICE_RESTART
from menudigital.realtime.client import OriginRejected, ReconnectionSupervisor, SupervisorState

ALLOWED = {"origin": DEV_ORIGIN}


def _ready(ws):
    """Round-trip a ping so the channel is known to be registered."""
    ws.send_json({"kind": "ping"})
    assert ws.receive_json() == {"kind": "pong"}


class TestHandshake:
    def test_allowed_origin_ping_pong(self, client):
        with client.websocket_connect("/", headers=ALLOWED) as ws:
            _ready(ws)

    def test_absent_origin_accepted(self, client):
        with client.websocket_connect("/") as ws:
            _ready(ws)

    def test_rejected_origin_closed_before_accept(self, client, app):
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/", headers={"origin": "http://evil.test"}):
                pass
        assert exc.value.code == CLOSE_ORIGIN_REJECTED
        assert app.state.origin_gate.rejected_total == 1
        assert len(app.state.hub) == 0

    def test_rejection_counted_in_metrics(self, client):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/", headers={"origin": "http://evil.test"}):
                pass
        body = client.get("/metrics").text
        assert "menudigital_channel_origin_rejected_total 1" in body

    def test_refused_after_hub_shutdown(self, client, app):
        client.portal.call(app.state.hub.shutdown)
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/", headers=ALLOWED):
                pass
        assert exc.value.code == CLOSE_SERVICE_RESTART
        assert len(app.state.hub) == 0
        assert app.state.hub.stats.connections_total == 0


class TestRouting:
    def test_menu_update_reaches_every_client(self, client):
        with client.websocket_connect("/", headers=ALLOWED) as a, \
                client.websocket_connect("/", headers=ALLOWED) as b, \
                client.websocket_connect("/") as c:
            for ws in (a, b, c):
                _ready(ws)
            a.send_json({"kind": "menu-updated", "restaurantId": 4, "item": {"id": 10, "name": "Ceviche"}})
            expected = {"kind": "menu-changed", "restaurantId": 4, "item": {"id": 10, "name": "Ceviche"}}
            assert a.receive_json() == expected
            assert b.receive_json() == expected
            assert c.receive_json() == expected

    def test_malformed_message_keeps_channel_open(self, client, app):
        with client.websocket_connect("/", headers=ALLOWED) as ws:
            ws.send_text("this is not json")
            ws.send_json({"kind": "menu-updated"})
            ws.send_json({"kind": "unknown"})
            _ready(ws)
        assert app.state.hub.stats.dropped_total == 3

    def test_health_reports_open_channels(self, client):
        with client.websocket_connect("/", headers=ALLOWED) as ws:
            _ready(ws)
            assert client.get("/health").json()["channels"] == 1


class TestLiveServer:
    """Real ``websockets`` client against uvicorn."""

    def test_supervisors_exchange_notifications(self, live_server):
        received = []

        async def scenario():
            url = f"ws://{live_server}/"
            listener = ReconnectionSupervisor(url, origin=DEV_ORIGIN, on_message=received.append)
            sender = ReconnectionSupervisor(url, origin=DEV_ORIGIN)
            await listener.start()
            await sender.start()
            try:
                assert await listener.wait_open(timeout=5)
                assert await sender.wait_open(timeout=5)
                await sender.send_menu_update(8, {"id": 1})
                deadline = asyncio.get_running_loop().time() + 5
                while not received and asyncio.get_running_loop().time() < deadline:
                    await asyncio.sleep(0.02)
            finally:
                await sender.close()
                await listener.close()

        asyncio.run(scenario())
        assert received == [{"kind": "menu-changed", "restaurantId": 8, "item": {"id": 1}}]

    def test_rejected_origin_gives_up_immediately(self, live_server):
        async def scenario():
            sup = ReconnectionSupervisor(f"ws://{live_server}/", origin="http://evil.test",
                                         retry_delay=0)
            await sup.start()
            await asyncio.wait_for(sup.wait_finished(), 5)
            return sup

        sup = asyncio.run(scenario())
        assert sup.state == SupervisorState.GAVE_UP
        assert sup.attempts == 0

    def test_connector_raises_origin_rejected(self, live_server):
        from menudigital.realtime.client import websocket_connector

        async def scenario():
            await websocket_connector(f"ws://{live_server}/", origin="http://evil.test")

        with pytest.raises(OriginRejected):
            asyncio.run(scenario())
