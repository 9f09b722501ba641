"""
Monitor API
Endpoints to control the background alert checker.
"""

from fastapi import APIRouter, Depends

from services import MonitorLoop

from .deps import get_monitor

router = APIRouter(prefix="/monitor", tags=["Monitor"])


@router.get("/status")
async def get_monitor_status(monitor: MonitorLoop = Depends(get_monitor)):
    """
    Get current status of the monitor loop.

    Returns:
        State, interval, tick and failure counters, last error
    """
    return monitor.stats.to_dict()


@router.post("/start")
async def start_monitor(monitor: MonitorLoop = Depends(get_monitor)):
    """Start periodic alert checks (no-op when already running)"""
    return monitor.start()


@router.post("/stop")
async def stop_monitor(monitor: MonitorLoop = Depends(get_monitor)):
    """Stop periodic alert checks"""
    return monitor.stop()


@router.post("/check")
def check_now(monitor: MonitorLoop = Depends(get_monitor)):
    """
    Run one alert check immediately.

    A failed price fetch is reported in `last_error`, not as an error
    response, the same way a scheduled tick treats it.
    """
    result = monitor.run_once()
    if result is None:
        return {"checked": 0, "triggered": 0, "alerts": [], "monitor": monitor.stats.to_dict()}
    return {**result.to_dict(), "monitor": monitor.stats.to_dict()}
