"""
Match Query Service

Business logic for reading stored matched programs.
"""
from datetime import datetime, timezone
import json
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from radiko_watch.models import MatchedProgram
from radiko_watch.schemas import (
    ArtistListResponse,
    ArtistProgramsRequest,
    ArtistProgramsResponse,
    ArtistSummary,
    MatchedProgramResponse,
    OnAirTrackResponse,
)
from radiko_watch.utils.timezone import convert_to_timezone

logger = logging.getLogger(__name__)


async def list_artists(db: AsyncSession) -> ArtistListResponse:
    """Return every artist with at least one stored program, with counts."""
    result = await db.execute(
        select(MatchedProgram.artist, func.count())
        .group_by(MatchedProgram.artist)
        .order_by(MatchedProgram.artist)
    )
    artists = [ArtistSummary(artist=artist, programs=count) for artist, count in result.all()]

    return ArtistListResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        artists=artists,
    )


async def get_artist_programs(db: AsyncSession, request: ArtistProgramsRequest) -> ArtistProgramsResponse:
    """
    Get stored programs for one artist

    Args:
        db: Database session
        request: Artist, response timezone, and whether to include expired documents

    Returns:
        Programs ordered by start time with timestamps in the requested timezone
    """
    logger.info(f"Received program request for {request.artist}, timezone={request.timezone}")

    now = datetime.now(timezone.utc)
    query = select(MatchedProgram.document, MatchedProgram.app_url).where(MatchedProgram.artist == request.artist)
    if not request.include_expired:
        query = query.where(MatchedProgram.expire_at > now.replace(microsecond=0).isoformat())
    query = query.order_by(MatchedProgram.start_time)

    result = await db.execute(query)
    programs = [
        _document_to_response(json.loads(document), app_url, request.timezone)
        for document, app_url in result.all()
    ]

    logger.info(f"Program response: {len(programs)} programs for {request.artist}")

    return ArtistProgramsResponse(
        timestamp=convert_to_timezone(now.isoformat(), request.timezone),
        timezone=request.timezone,
        artist=request.artist,
        total_programs=len(programs),
        programs=programs,
    )


def _document_to_response(document: dict, app_url: str, target_tz: str) -> MatchedProgramResponse:
    """Convert a stored program document into response format."""
    station = document["station"]
    return MatchedProgramResponse(
        station_id=station["id"],
        station_name=station["name"],
        program_id=document["id"],
        title=document["title"],
        start_time=convert_to_timezone(document["ft"], target_tz),
        end_time=convert_to_timezone(document["to"], target_tz),
        duration=document["dur"],
        info=document.get("info"),
        description=document.get("desc"),
        performers=document.get("pfm"),
        image_url=document.get("img"),
        app_url=app_url,
        expire_at=convert_to_timezone(document["expire_at"], target_tz),
        on_air_music=[OnAirTrackResponse(**track) for track in document.get("on_air_music", [])],
    )
