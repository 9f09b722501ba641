"""
Alarms API
Alerts that have fired and are waiting to be acknowledged.

Endpoints:
    GET  /api/alarms           → Currently alarming alerts (poll this)
    POST /api/alarms/{id}/stop → Acknowledge / stop an alarm
    GET  /api/alarms/stream    → SSE stream of new alarms
"""

import asyncio
import json

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from alerts import AlarmRegistry
from services import AlarmBroadcaster

from .deps import get_broadcaster, get_registry

router = APIRouter(prefix="/alarms", tags=["Alarms"])

KEEPALIVE_SECONDS = 30.0


@router.get("")
async def list_alarms(registry: AlarmRegistry = Depends(get_registry)):
    """Get all alerts whose alarm is still ringing"""
    return [a.to_dict() for a in registry.list_active()]


@router.post("/{alert_id}/stop")
async def stop_alarm(alert_id: str, registry: AlarmRegistry = Depends(get_registry)):
    """
    Stop an alarm.

    Stopping an alarm that is not ringing succeeds without changing the
    alert.
    """
    alert = registry.stop(alert_id)
    return {"message": "Alarm stopped", "alert": alert.to_dict()}


@router.get("/stream")
async def stream_alarms(broadcaster: AlarmBroadcaster = Depends(get_broadcaster)):
    """
    Server-Sent Events stream of newly triggered alarms.

    Connect via EventSource in browser:
        const es = new EventSource('/api/alarms/stream');
        es.onmessage = (e) => console.log(JSON.parse(e.data));

    Polling GET /api/alarms remains the source of truth; events missed
    while disconnected are not replayed.
    """
    queue = broadcaster.subscribe()

    async def event_generator():
        try:
            yield f"data: {json.dumps({'type': 'connected', 'message': 'Alarm stream connected'})}\n\n"

            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), KEEPALIVE_SECONDS)
                    yield f"data: {json.dumps(event)}\n\n"
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
        finally:
            broadcaster.unsubscribe(queue)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
