"""
Database operations for matched programs

This module contains the write operations for stations and matched program documents.
"""
import json
import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import delete, func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from radiko_watch.models import MatchedProgram
from radiko_watch.services.fetch_types import ProgramRecord, StationChannel


logger = logging.getLogger(__name__)

CHUNK_SIZE = 1000


async def store_stations(db: AsyncSession, stations: Sequence[StationChannel]) -> None:
    """
    Store stations using UPSERT semantics.

    Args:
        db: Database session
        stations: Stations from the latest station list
    """
    if not stations:
        logger.debug("No stations to store")
        return

    # Deduplicate by id while preserving last occurrence
    deduped: dict[str, StationChannel] = {station.id: station for station in stations}
    logger.info("Storing %s stations", len(deduped))

    station_stmt = text(
        """
        INSERT INTO stations (id, name, banner_url, area_id, updated_at)
        VALUES (:id, :name, :banner_url, :area_id, :updated_at)
        ON CONFLICT(id) DO UPDATE SET
            name = excluded.name,
            banner_url = excluded.banner_url,
            area_id = excluded.area_id,
            updated_at = excluded.updated_at
        """
    )

    now = datetime.now(timezone.utc).replace(tzinfo=None)
    payload = [
        {
            "id": station.id,
            "name": station.name,
            "banner_url": station.banner_url,
            "area_id": station.area_id,
            "updated_at": now,
        }
        for station in deduped.values()
    ]

    for start_index in range(0, len(payload), CHUNK_SIZE):
        await db.execute(station_stmt, payload[start_index:start_index + CHUNK_SIZE])


async def store_matches(
    db: AsyncSession,
    matches: Sequence[tuple[str, ProgramRecord]],
) -> int:
    """
    Upsert one document per (artist, program) pair.

    Args:
        db: Database session
        matches: (artist, program) pairs from the artist matcher

    Returns:
        Number of documents written
    """
    if not matches:
        logger.debug("No matched programs to store")
        return 0

    match_stmt = text(
        """
        INSERT INTO matched_programs (
            artist,
            station_id,
            program_id,
            title,
            start_time,
            end_time,
            expire_at,
            app_url,
            document,
            updated_at
        )
        VALUES (
            :artist,
            :station_id,
            :program_id,
            :title,
            :start_time,
            :end_time,
            :expire_at,
            :app_url,
            :document,
            :updated_at
        )
        ON CONFLICT(artist, station_id, program_id) DO UPDATE SET
            title = excluded.title,
            start_time = excluded.start_time,
            end_time = excluded.end_time,
            expire_at = excluded.expire_at,
            app_url = excluded.app_url,
            document = excluded.document,
            updated_at = excluded.updated_at
        """
    )

    now = datetime.now(timezone.utc).replace(tzinfo=None)
    deduped: dict[tuple[str, str, int], dict[str, object]] = {}
    for artist, program in matches:
        document = program.to_document()
        deduped[(artist, program.station.id, program.program_id)] = {
            "artist": artist,
            "station_id": program.station.id,
            "program_id": program.program_id,
            "title": program.title,
            "start_time": document["ft"],
            "end_time": document["to"],
            "expire_at": document["expire_at"],
            "app_url": program.app_url_scheme,
            "document": json.dumps(document, ensure_ascii=False),
            "updated_at": now,
        }

    payload = list(deduped.values())
    for start_index in range(0, len(payload), CHUNK_SIZE):
        await db.execute(match_stmt, payload[start_index:start_index + CHUNK_SIZE])

    logger.info("Stored %s matched program documents", len(payload))
    return len(payload)


async def delete_expired_matches(db: AsyncSession, now: datetime | None = None) -> int:
    """
    Delete matched programs whose retention marker has passed.

    Args:
        db: Database session
        now: Reference instant (defaults to the current time)

    Returns:
        Number of deleted documents
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc).replace(microsecond=0)
    cutoff = now.isoformat()

    result = await db.execute(
        select(func.count()).select_from(MatchedProgram).where(MatchedProgram.expire_at <= cutoff)
    )
    deleted_count = result.scalar_one_or_none() or 0

    await db.execute(delete(MatchedProgram).where(MatchedProgram.expire_at <= cutoff))

    logger.info("Deleted %s expired matched programs (expire_at <= %s)", deleted_count, cutoff)
    return deleted_count
