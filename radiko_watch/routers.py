from typing import Annotated
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
import logging

from radiko_watch.database import get_db
from radiko_watch.schemas import ArtistListResponse, ArtistProgramsRequest, ArtistProgramsResponse
from radiko_watch.services import (
    fetch_and_process,
    fetch_scheduler,
    get_artist_programs,
    list_artists,
)


logger = logging.getLogger(__name__)

main_router = APIRouter()

@main_router.get("/")
async def root() -> dict:
    """Root endpoint with service information"""
    next_run = fetch_scheduler.get_next_run_time()

    return {
        "service": "radiko-watch",
        "version": "0.1.0",
        "next_scheduled_fetch": next_run.isoformat() if next_run else None,
        "endpoints": {
            "fetch": "/fetch - Manually trigger a schedule fetch",
            "artists": "/artists - Matched artists with stored program counts",
            "artist_programs": "/artists/{artist}/programs - Stored programs for one artist",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health")
async def health_check() -> dict:
    """Health check endpoint"""
    next_run = fetch_scheduler.get_next_run_time()
    return {
        "status": "ok",
        "scheduler_running": fetch_scheduler.scheduler.running if fetch_scheduler.scheduler else False,
        "next_fetch": next_run.isoformat() if next_run else None
    }


@main_router.post("/fetch")
async def trigger_fetch() -> dict:
    """
    Manually trigger a schedule fetch

    This will download schedules, match artists and store the matches
    """
    logger.info("Manual schedule fetch triggered via API")
    result = await fetch_and_process()

    if "error" in result:
        raise HTTPException(status_code=500, detail=result["error"])

    return result


@main_router.get("/artists", response_model=ArtistListResponse)
async def get_artists(db: Annotated[AsyncSession, Depends(get_db)]) -> ArtistListResponse:
    """List artists that have stored programs"""
    return await list_artists(db)


@main_router.get("/artists/{artist}/programs", response_model=ArtistProgramsResponse)
async def get_programs_for_artist(
    artist: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    timezone: Annotated[str, Query()] = "Asia/Tokyo",
    include_expired: Annotated[bool, Query()] = False,
) -> ArtistProgramsResponse:
    """
    Get stored programs matched to one artist

    Args:
        artist: Group or member name
        timezone: IANA timezone for response timestamps

    Returns:
        Programs ordered by start time
    """
    try:
        request = ArtistProgramsRequest(
            artist=artist,
            timezone=timezone,
            include_expired=include_expired,
        )
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False, include_context=False)) from exc

    return await get_artist_programs(db, request)
