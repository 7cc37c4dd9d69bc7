import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from qrsync.api.dependencies import get_marker_store, get_request_settings
from qrsync.core.config import Settings
from qrsync.markers.base import MarkerStore
from qrsync.markers.exceptions import MARKER_STORE_EXCEPTIONS

router = APIRouter(tags=["system"])


def _readiness_response(*, ready: bool, marker_backend: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "not_ready",
            "marker_backend": marker_backend,
        },
    )


@router.get("/healthz")
def healthz() -> dict[str, str]:
    """Liveness probe used by orchestrators."""
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(
    settings: Annotated[Settings, Depends(get_request_settings)],
    marker_store: Annotated[MarkerStore | None, Depends(get_marker_store)],
) -> JSONResponse:
    """Readiness probe that checks the dedup marker store."""
    if marker_store is None:
        return _readiness_response(ready=False, marker_backend=settings.marker_backend)

    try:
        ready = await asyncio.to_thread(marker_store.ping)
    except MARKER_STORE_EXCEPTIONS:
        ready = False
    return _readiness_response(ready=bool(ready), marker_backend=settings.marker_backend)
