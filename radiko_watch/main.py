from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from radiko_watch.config import setup_logging
from radiko_watch.database import close_db, init_db
from radiko_watch.services.scheduler_service import fetch_scheduler

from radiko_watch.routers import main_router


setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    logger.info("Starting radiko-watch...")

    try:
        logger.info("Initializing database...")
        await init_db()
        logger.info("Database initialized successfully")

        logger.info("Starting scheduler...")
        fetch_scheduler.start()
        logger.info("Scheduler started successfully")

        logger.info("radiko-watch started successfully")
    except Exception as e:
        logger.error(f"Failed to start radiko-watch: {e}", exc_info=True)
        raise

    yield

    logger.info("Shutting down radiko-watch...")

    try:
        fetch_scheduler.shutdown()
        logger.info("Scheduler stopped")
    except Exception as e:
        logger.error(f"Error during scheduler shutdown: {e}", exc_info=True)

    await close_db()
    logger.info("radiko-watch stopped")


app = FastAPI(
    title="radiko-watch",
    version="0.1.0",
    lifespan=lifespan
)

app.include_router(main_router)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors with details"""
    logger.error(f"Validation error for {request.method} {request.url.path}")
    logger.error(f"Validation details: {exc.errors()}")

    errors = []
    for error in exc.errors():
        error_dict = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
            "input": str(error.get("input", ""))[:100]
        }
        errors.append(error_dict)

    return JSONResponse(
        status_code=422,
        content={
            "detail": errors
        }
    )
