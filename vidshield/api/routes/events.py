"""Live processing events over WebSocket."""

import asyncio
from typing import Optional

import structlog
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from starlette.websockets import WebSocketState

from vidshield.api.dependencies import get_container
from vidshield.domain.exceptions import BroadcastError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


async def _forward(websocket: WebSocket, subscription) -> None:
    async for message in subscription:
        await websocket.send_json(message.to_dict())


async def _drain_client(websocket: WebSocket) -> None:
    # Client frames carry no meaning; reading detects the disconnect
    while True:
        await websocket.receive_text()


@router.websocket("/ws")
async def tenant_events(websocket: WebSocket, token: Optional[str] = Query(None)):
    """Stream processing events of the token's tenant.

    Frames have the shape ``{"event": name, "data": payload}``.
    """
    container = get_container(websocket)
    actor = container.jwt_service.authenticate(token) if token else None
    if actor is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        subscription = await container.broadcaster.subscribe(actor.tenant_id)
    except BroadcastError as e:
        logger.error("event_subscription_failed", tenant_id=actor.tenant_id, error=str(e))
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return

    await websocket.accept()
    log = logger.bind(tenant_id=actor.tenant_id, user_id=actor.user_id)
    log.info("event_stream_opened")

    async with subscription:
        tasks = {
            asyncio.create_task(_forward(websocket, subscription)),
            asyncio.create_task(_drain_client(websocket)),
        }
        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        for task in done:
            error = task.exception()
            if error is not None and not isinstance(error, WebSocketDisconnect):
                log.warning("event_stream_error", error=str(error))

    if websocket.client_state == WebSocketState.CONNECTED:
        try:
            await websocket.close()
        except RuntimeError as e:
            log.debug("event_stream_close_skipped", reason=str(e))
    log.info("event_stream_closed")
