from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.adapters.api.controllers.journeys import router as journeys_router
from src.adapters.api.controllers.stops import router as stops_router
from src.domain.exceptions import (
    InvalidSearchInput,
    RoutingError,
    ScheduleDataAccessError,
    SearchTimeout,
    StopNotFound,
)

LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Timetable Journeys")
app.include_router(journeys_router)
app.include_router(stops_router)


@app.exception_handler(RoutingError)
async def routing_error_handler(request: Request, exc: RoutingError) -> JSONResponse:
    """Search errors raised outside the journey envelope (stop lookups, timetables)."""

    if isinstance(exc, StopNotFound):
        status = 404
    elif isinstance(exc, InvalidSearchInput):
        status = 400
    elif isinstance(exc, SearchTimeout):
        status = 504
    elif isinstance(exc, ScheduleDataAccessError):
        logging.getLogger("uvicorn.error").warning(
            "Schedule store failure: %s", exc, extra={"path": str(request.url.path)}
        )
        status = 503
    else:
        status = 500
    return JSONResponse(status_code=status, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Keep unexpected failures JSON-shaped for API clients."""

    logging.getLogger("uvicorn.error").exception(
        "Unhandled exception", extra={"path": str(request.url.path)}
    )

    reveal = (os.getenv("JOURNEYS_REVEAL_ERRORS") or "").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }
    detail = (str(exc) or exc.__class__.__name__) if reveal else "Internal Server Error"
    return JSONResponse(status_code=500, content={"detail": detail})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
