import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text

from .config import settings
from .database import get_engine
from .redis_client import redis_client
from .routers import availability, schedules, time_blocks

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Smart Slots API")

app.include_router(availability.router)
app.include_router(schedules.router)
app.include_router(time_blocks.router)


# Malformed request shape is a 400, not FastAPI's default 422
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.get("/health")
def health():
    return {"database": _database_ok(), "redis": _redis_ok()}


def _database_ok() -> bool:
    if not settings.database_url:
        return False
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("Database health check failed")
        return False


def _redis_ok() -> bool | None:
    if redis_client is None:
        return None
    try:
        return bool(redis_client.ping())
    except Exception:
        logger.exception("Redis health check failed")
        return False
