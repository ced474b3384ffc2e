import threading
from datetime import datetime

from fastapi import APIRouter, Request

from board_app import settings

router = APIRouter(tags=["health"])


class RequestCounter:
    """Thread-safe counter; one instance per application, created by ``create_app()``."""

    def __init__(self):
        self._value = 0
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


@router.get("/ping")
async def ping(request: Request):
    request.app.state.request_counter.increment()
    return {
        "status": "OK",
        "message": "pong",
        "timestamp": datetime.now().isoformat(),
    }


@router.get("/deploy-info")
async def deploy_info(request: Request):
    deployed_at = request.app.state.deployed_at
    uptime = datetime.now() - deployed_at
    return {
        "version": settings.APP_VERSION,
        "environment": settings.APP_ENVIRONMENT,
        "deployedAt": deployed_at.strftime("%Y-%m-%d %H:%M:%S"),
        "uptimeMinutes": int(uptime.total_seconds() // 60),
        "requestCount": request.app.state.request_counter.value,
        "status": "OK",
    }
