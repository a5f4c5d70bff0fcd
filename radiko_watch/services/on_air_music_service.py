"""
On-air music enrichment

radiko's music index ("noas") lists the tracks detected on a station in a time
range. It is only populated after the fact, so only ended programs are queried.
"""
import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from radiko_watch.config import settings
from radiko_watch.services.fetch_types import OnAirTrack, ProgramRecord
from radiko_watch.utils.http_client import fetch_json
from radiko_watch.utils.text import normalize_text
from radiko_watch.utils.timezone import DateFormatError, parse_iso8601_to_utc


logger = logging.getLogger(__name__)


def parse_on_air_track(item: dict[str, Any], program_start: datetime) -> OnAirTrack:
    """
    Build an OnAirTrack from one entry of the music index

    Raises:
        KeyError, TypeError: If a field is missing or has the wrong shape
        DateFormatError: If displayed_start_time is not ISO8601
    """
    displayed_start = parse_iso8601_to_utc(item["displayed_start_time"])
    return OnAirTrack(
        artist_name=normalize_text(item["artist_name"]),
        track_title=normalize_text(item["title"]),
        artwork_url=normalize_text(item["music"]["image"]["large"]),
        offset_from_start=displayed_start - program_start,
    )


def parse_on_air_tracks(payload: Any, program_start: datetime) -> list[OnAirTrack]:
    """Map the `data` array of a music index response, skipping malformed entries."""
    items = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        return []

    tracks = []
    for item in items:
        try:
            tracks.append(parse_on_air_track(item, program_start))
        except (KeyError, TypeError, DateFormatError) as exc:
            logger.debug("Skipping malformed on-air entry: %r (%s)", item, exc)
    return tracks


async def fetch_on_air_tracks(
    client: httpx.AsyncClient,
    program: ProgramRecord,
    now: datetime | None = None,
) -> list[OnAirTrack]:
    """
    Fetch the tracks played during a program

    Args:
        client: Shared async client
        program: Program to look up
        now: Reference instant (defaults to the current time)

    Returns:
        Tracks in index order; empty without a request if the program has not ended

    Raises:
        httpx.HTTPError: If the request fails after all retries
    """
    now = now or datetime.now(timezone.utc)
    if not program.has_ended(now):
        return []

    url = f"{settings.on_air_music_url.rstrip('/')}/{program.station.id}"
    params = {
        "start_time_gte": program.start_time.isoformat(),
        "end_time_lt": program.end_time.isoformat(),
    }
    payload = await fetch_json(
        client,
        url,
        params=params,
        max_retries=settings.http_max_retries,
        backoff_factor=settings.http_backoff_factor,
    )
    tracks = parse_on_air_tracks(payload, program.start_time)
    logger.debug(
        "Program %s/%s: %s on-air tracks",
        program.station.id,
        program.program_id,
        len(tracks),
    )
    return tracks
