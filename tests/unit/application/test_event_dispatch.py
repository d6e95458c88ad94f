from __future__ import annotations

import json
import logging
from types import SimpleNamespace
from uuid import uuid4

import pytest

from src.application.events.dispatcher import build_message, dispatch_events
from src.application.events.models import LotMovedEvent, QrSnapshotChangedEvent
from src.infrastructure.websocket.connection_manager import ConnectionManager


class FakeWebSocket:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.accepted = False
        self.sent: list[str] = []
        self.client_state = SimpleNamespace(name="CONNECTED")

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, message: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


def _moved(org, sub_lot_ids=()):
    return LotMovedEvent(
        organization_id=org,
        actor_user_id=uuid4(),
        lot_id=uuid4(),
        from_stage="matadero",
        to_stage="secadero",
        sub_lot_ids=list(sub_lot_ids),
    )


@pytest.mark.asyncio
async def test_lot_moved_is_broadcast_to_the_organization_only():
    org, other_org = uuid4(), uuid4()
    manager = ConnectionManager()
    listener, outsider = FakeWebSocket(), FakeWebSocket()
    await manager.connect(org, listener)
    await manager.connect(other_org, outsider)
    child = uuid4()
    event = _moved(org, [child])

    await dispatch_events([event], manager)

    assert listener.accepted
    assert outsider.sent == []
    message = json.loads(listener.sent[0])
    assert message == {
        "type": "invalidate",
        "event": "lot_moved",
        "resources": ["board", "lots", "stays"],
        "lot_id": str(event.lot_id),
        "from_stage": "matadero",
        "to_stage": "secadero",
        "sub_lot_ids": [str(child)],
    }


def test_snapshot_messages_invalidate_snapshot_lists():
    event = QrSnapshotChangedEvent(
        organization_id=uuid4(),
        actor_user_id=uuid4(),
        snapshot_id=uuid4(),
        lot_id=uuid4(),
        action="revoked",
    )
    message = build_message(event)
    assert message["event"] == "qr_snapshot_revoked"
    assert message["resources"] == ["qr_snapshots"]
    assert build_message(object()) is None


@pytest.mark.asyncio
async def test_failed_send_drops_the_connection(caplog):
    org = uuid4()
    manager = ConnectionManager()
    broken, healthy = FakeWebSocket(fail=True), FakeWebSocket()
    await manager.connect(org, broken)
    await manager.connect(org, healthy)

    with caplog.at_level(logging.WARNING):
        await dispatch_events([_moved(org)], manager)

    assert len(healthy.sent) == 1
    assert manager.get_connection_count() == 1
    assert "Error sending to one connection" in caplog.text


@pytest.mark.asyncio
async def test_dispatch_failure_is_logged_and_does_not_stop_other_events(caplog):
    class ExplodingManager(ConnectionManager):
        def __init__(self) -> None:
            super().__init__()
            self.calls = 0

        async def broadcast(self, organization_id, message):
            self.calls += 1
            if self.calls == 1:
                raise RuntimeError("broker down")
            return await super().broadcast(organization_id, message)

    org = uuid4()
    manager = ExplodingManager()
    listener = FakeWebSocket()
    await manager.connect(org, listener)

    with caplog.at_level(logging.ERROR):
        await dispatch_events([_moved(org), _moved(org)], manager)

    assert len(listener.sent) == 1
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert errors and errors[0].exc_info is not None
    assert "Failed to dispatch event LotMovedEvent" in errors[0].getMessage()


@pytest.mark.asyncio
async def test_nothing_to_dispatch_without_events():
    manager = ConnectionManager()
    await dispatch_events([], manager)
    assert manager.get_connection_count() == 0
