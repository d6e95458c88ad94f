from __future__ import annotations

import json
import logging
from typing import Iterable

from src.application.events.models import (
    LotChangedEvent,
    LotMovedEvent,
    QrSnapshotChangedEvent,
    ZoneChangedEvent,
)
from src.infrastructure.websocket.connection_manager import ConnectionManager, board_connections

logger = logging.getLogger(__name__)


def build_message(event: object) -> dict | None:
    """Invalidation message telling listeners which views to re-query."""
    if isinstance(event, LotMovedEvent):
        return {
            "type": "invalidate",
            "event": "lot_moved",
            "resources": ["board", "lots", "stays"],
            "lot_id": str(event.lot_id),
            "from_stage": event.from_stage,
            "to_stage": event.to_stage,
            "sub_lot_ids": [str(x) for x in event.sub_lot_ids],
        }
    if isinstance(event, LotChangedEvent):
        return {
            "type": "invalidate",
            "event": f"lot_{event.action}",
            "resources": ["board", "lots"],
            "lot_id": str(event.lot_id),
        }
    if isinstance(event, ZoneChangedEvent):
        return {
            "type": "invalidate",
            "event": f"zone_{event.action}",
            "resources": ["board", "zones"],
            "zone_id": str(event.zone_id),
        }
    if isinstance(event, QrSnapshotChangedEvent):
        return {
            "type": "invalidate",
            "event": f"qr_snapshot_{event.action}",
            "resources": ["qr_snapshots"],
            "snapshot_id": str(event.snapshot_id),
            "lot_id": str(event.lot_id),
        }
    return None


async def dispatch_events(
    events: Iterable[object], connection_manager: ConnectionManager | None = None
) -> None:
    """
    Dispatch events post-commit as invalidation signals.
    Safe to call in a background task.
    """
    events = list(events)
    if not events:
        return
    manager = connection_manager or board_connections

    for event in events:
        try:
            message = build_message(event)
            if message is None:
                logger.debug(f"No handler for event {type(event).__name__}")
                continue
            sent = await manager.broadcast(event.organization_id, json.dumps(message))
            logger.info(
                f"Event dispatched: {message['event']} "
                f"organization={event.organization_id} listeners={sent}"
            )
        except Exception:
            logger.error(f"Failed to dispatch event {type(event).__name__}", exc_info=True)
