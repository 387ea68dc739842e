import logging
import sqlite3
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from booking.config import settings
from booking.database import init_db
from booking.errors import NotFoundError, PastDateError, StorageError, ValidationError
from booking.routers import bookings, jobs, users

logger = logging.getLogger("booking")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create/migrate the database and integrity-check it
    try:
        settings.data_path.mkdir(parents=True, exist_ok=True)
        init_db(settings.db_path)
        conn = sqlite3.connect(str(settings.db_path))
        result = conn.execute("PRAGMA integrity_check").fetchone()
        conn.close()
        if result and result[0] == "ok":
            logger.info("Database integrity check passed.")
        else:
            logger.error("DATABASE INTEGRITY CHECK FAILED: %s", result)
    except (OSError, sqlite3.Error) as exc:
        logger.error("Could not run startup migration/integrity check: %s", exc)
    yield


app = FastAPI(
    title="Booking Dispatch",
    description="Interpreter booking lifecycle and translator push dispatch",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": exc.message, "field": exc.field})


@app.exception_handler(PastDateError)
async def past_date_handler(request: Request, exc: PastDateError):
    return JSONResponse(status_code=422, content={"detail": exc.message, "field": "due_date"})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error("Storage failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


app.include_router(bookings.router, prefix=settings.api_prefix)
app.include_router(jobs.router, prefix=settings.api_prefix)
app.include_router(users.router, prefix=settings.api_prefix)


@app.get("/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}


def run():
    import uvicorn
    uvicorn.run("booking.main:app", host=settings.host, port=settings.port)
