from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from src.application.use_cases.tracking import get_board
from src.infrastructure.auth.context import AuthContext, context_from_claims
from src.infrastructure.db.session import SQLAlchemyUnitOfWork
from src.infrastructure.websocket.connection_manager import board_connections
from src.interfaces.http.deps import get_auth_context, get_uow
from src.interfaces.http.schemas.lots import LotResponse, StayResponse
from src.interfaces.http.schemas.tracking import (
    BoardColumnResponse,
    BoardLotResponse,
    BoardResponse,
)
from src.interfaces.http.schemas.zones import ZoneResponse
from src.utils.datetime_tz import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tracking", tags=["tracking"])


@router.get("/board", response_model=BoardResponse)
async def board(
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    now = utcnow()
    result = await get_board.execute(uow, context.organization_id, now=now)
    stages = {
        stage.value: BoardColumnResponse(
            zones=[ZoneResponse.from_domain(z) for z in column.zones],
            lots=[
                BoardLotResponse(
                    lot=LotResponse.model_validate(item.lot),
                    current_zone=(
                        ZoneResponse.from_domain(item.current_zone) if item.current_zone else None
                    ),
                    current_stay=(
                        StayResponse.model_validate(item.current_stay)
                        if item.current_stay
                        else None
                    ),
                    total_days=item.total_days,
                )
                for item in column.lots
            ],
        )
        for stage, column in result.columns.items()
    }
    return BoardResponse(stages=stages, generated_at=now)


@router.websocket("/ws")
async def board_updates(websocket: WebSocket, token: str) -> None:
    """
    WebSocket for board invalidation signals.
    Requires JWT token as query parameter: /ws?token=<jwt_token>
    """
    try:
        jwt_service = getattr(websocket.app.state, "jwt_service", None)
        if jwt_service is None:
            raise RuntimeError("JWT service not configured")
        context = context_from_claims(jwt_service.decode(token))
    except Exception as e:
        logger.info(f"WebSocket authentication failed: {e}")
        await websocket.close(code=1008, reason="Authentication failed")
        return

    organization_id = context.organization_id
    await board_connections.connect(organization_id, websocket)
    try:
        # Keep connection alive and answer pings
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        logger.info(f"WebSocket client disconnected: organization={organization_id}")
    except Exception as e:
        logger.error(f"WebSocket error: {e}", exc_info=True)
    finally:
        board_connections.disconnect(organization_id, websocket)
