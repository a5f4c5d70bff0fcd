"""
Schedule Fetching Service

Coordinates downloading, parsing, enrichment, matching and persistence of radiko
schedules for every station.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Literal

import httpx
from lxml import etree # type: ignore

from radiko_watch.config import settings
from radiko_watch.database import session_scope
from radiko_watch.services.artist_matcher import Roster, search_artists
from radiko_watch.services.db_service import delete_expired_matches, store_matches, store_stations
from radiko_watch.services.fetch_types import ProgramRecord, StationChannel
from radiko_watch.services.on_air_music_service import fetch_on_air_tracks
from radiko_watch.services.program_builder import build_programs
from radiko_watch.services.radiko_parser_service import parse_schedule, parse_station_list
from radiko_watch.services.roster_service import RosterFormatError, load_roster
from radiko_watch.utils.data_merging import merge_programs
from radiko_watch.utils.http_client import create_client, fetch_bytes
from radiko_watch.utils.logging_helpers import (
    log_fetch_end,
    log_fetch_start,
    log_match_summary,
    log_section_end,
    log_section_start,
    log_station_processing,
)
from radiko_watch.utils.timezone import schedule_dates


logger = logging.getLogger(__name__)

# Global lock to prevent concurrent fetch operations
_fetch_lock = asyncio.Lock()


@dataclass(slots=True)
class FetchContext:
    started_at: datetime
    stale_cutoff: datetime
    dates: list[date]


@dataclass(slots=True)
class ScheduleSummary:
    station_id: str
    schedule_date: date
    status: Literal["success", "failed"]
    programs_built: int = 0
    error: str | None = None
    programs: list[ProgramRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        payload = {
            "station_id": self.station_id,
            "date": self.schedule_date.isoformat(),
            "status": self.status,
            "programs_built": self.programs_built,
        }
        if self.error:
            payload["error"] = self.error
        return payload


def _parse_and_build(xml: bytes, station: StationChannel) -> list[ProgramRecord]:
    return build_programs(parse_schedule(xml), station)


class ScheduleFetchPipeline:
    """Coordinates download, build, enrichment, matching and persistence for a fetch cycle."""

    def __init__(
        self,
        roster: Roster,
        client: httpx.AsyncClient,
        *,
        max_concurrency: int | None = None,
        now: datetime | None = None,
    ) -> None:
        self.roster = roster
        self.client = client
        self._concurrency = max(1, max_concurrency or settings.max_concurrency)
        self._semaphore = asyncio.Semaphore(self._concurrency)
        self._now = now

    async def run(self) -> dict:
        context = self._build_context()
        logger.info(
            "Schedule dates: %s -> %s (%s days), dropping programs ended before %s",
            context.dates[0].isoformat(),
            context.dates[-1].isoformat(),
            len(context.dates),
            context.stale_cutoff.isoformat(),
        )

        stations = await self._fetch_stations()
        summaries = await self._collect_schedules(context, stations)
        programs = self._merge_summaries(summaries)
        fresh_programs = self._drop_stale(context, programs)

        log_section_start(logger, "On-air music enrichment")
        enriched, enrich_failures = await self._enrich_programs(context, fresh_programs)
        log_section_end(logger, "On-air music enrichment")

        matches = self._match_programs(enriched)

        log_section_start(logger, "Persisting matches")
        stored, expired = await self._persist(context, stations, matches)
        log_section_end(logger, "Persisting matches")

        return self._build_result(
            context,
            stations,
            summaries,
            programs_total=len(programs),
            programs_fresh=len(fresh_programs),
            enrich_failures=enrich_failures,
            matches=matches,
            stored=stored,
            expired=expired,
        )

    def _build_context(self) -> FetchContext:
        started_at = self._now or datetime.now(timezone.utc)
        return FetchContext(
            started_at=started_at,
            stale_cutoff=started_at - timedelta(hours=settings.stale_program_hours),
            dates=schedule_dates(settings.fetch_days, started_at),
        )

    async def _fetch_stations(self) -> list[StationChannel]:
        logger.info("Downloading station list: %s", settings.station_list_url)
        xml = await fetch_bytes(
            self.client,
            settings.station_list_url,
            max_retries=settings.http_max_retries,
            backoff_factor=settings.http_backoff_factor,
        )
        loop = asyncio.get_running_loop()
        stations = await loop.run_in_executor(None, parse_station_list, xml)
        if not stations:
            raise ValueError("No stations found in station list")
        return stations

    async def _collect_schedules(
        self,
        context: FetchContext,
        stations: list[StationChannel],
    ) -> list[ScheduleSummary]:
        tasks = []
        for index, station in enumerate(stations, start=1):
            log_station_processing(logger, index, len(stations), station.id)
            tasks.extend(
                asyncio.create_task(self._process_schedule(station, schedule_date))
                for schedule_date in context.dates
            )

        return list(await asyncio.gather(*tasks))

    async def _process_schedule(
        self,
        station: StationChannel,
        schedule_date: date,
    ) -> ScheduleSummary:
        url = settings.schedule_url_template.format(
            date=schedule_date.strftime("%Y%m%d"),
            station_id=station.id,
        )

        async with self._semaphore:
            try:
                xml = await fetch_bytes(
                    self.client,
                    url,
                    max_retries=settings.http_max_retries,
                    backoff_factor=settings.http_backoff_factor,
                )
                loop = asyncio.get_running_loop()
                programs = await loop.run_in_executor(None, _parse_and_build, xml, station)
            except (httpx.HTTPError, etree.XMLSyntaxError) as exc:
                logger.error(
                    "[%s %s] Failed to process schedule: %s",
                    station.id,
                    schedule_date.isoformat(),
                    exc,
                    exc_info=True,
                )
                return ScheduleSummary(
                    station_id=station.id,
                    schedule_date=schedule_date,
                    status="failed",
                    error=str(exc),
                )

        logger.debug(
            "[%s %s] Built %s programs",
            station.id,
            schedule_date.isoformat(),
            len(programs),
        )
        return ScheduleSummary(
            station_id=station.id,
            schedule_date=schedule_date,
            status="success",
            programs_built=len(programs),
            programs=programs,
        )

    def _merge_summaries(self, summaries: list[ScheduleSummary]) -> list[ProgramRecord]:
        merged: dict[tuple[str, int], ProgramRecord] = {}
        for summary in summaries:
            merge_programs(merged, summary.programs)
            summary.programs.clear()
        return list(merged.values())

    def _drop_stale(self, context: FetchContext, programs: list[ProgramRecord]) -> list[ProgramRecord]:
        fresh = [program for program in programs if program.end_time >= context.stale_cutoff]
        logger.info(
            "Keeping %s of %s programs (%s ended before %s)",
            len(fresh),
            len(programs),
            len(programs) - len(fresh),
            context.stale_cutoff.isoformat(),
        )
        return fresh

    async def _enrich_programs(
        self,
        context: FetchContext,
        programs: list[ProgramRecord],
    ) -> tuple[list[ProgramRecord], int]:
        results = await asyncio.gather(
            *(self._enrich_program(context, program) for program in programs)
        )
        enriched = [program for program, _ in results]
        failures = sum(1 for _, failed in results if failed)
        if failures:
            logger.warning("On-air music lookup failed for %s programs", failures)
        return enriched, failures

    async def _enrich_program(
        self,
        context: FetchContext,
        program: ProgramRecord,
    ) -> tuple[ProgramRecord, bool]:
        if not program.has_ended(context.started_at):
            return program, False

        async with self._semaphore:
            try:
                tracks = await fetch_on_air_tracks(self.client, program, context.started_at)
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning(
                    "[%s] On-air music lookup failed for program %s: %s",
                    program.station.id,
                    program.program_id,
                    exc,
                )
                return program, True

        return program.with_tracks(tracks), False

    def _match_programs(self, programs: list[ProgramRecord]) -> list[tuple[str, ProgramRecord]]:
        matches: list[tuple[str, ProgramRecord]] = []
        matched_programs = 0
        for program in programs:
            artists = search_artists(program, self.roster)
            if not artists:
                continue
            matched_programs += 1
            logger.info(
                "Matched %s,%s: %s",
                program.title,
                program.performers or "",
                artists,
            )
            matches.extend((artist, program) for artist in artists)

        log_match_summary(logger, len(programs), matched_programs, len(matches))
        return matches

    async def _persist(
        self,
        context: FetchContext,
        stations: list[StationChannel],
        matches: list[tuple[str, ProgramRecord]],
    ) -> tuple[int, int]:
        try:
            async with session_scope() as session:
                await store_stations(session, stations)
                stored = await store_matches(session, matches)
                expired = await delete_expired_matches(session, context.started_at)
        except RuntimeError as exc:
            logger.error("Database not initialized: %s", exc)
            raise
        return stored, expired

    def _build_result(
        self,
        context: FetchContext,
        stations: list[StationChannel],
        summaries: list[ScheduleSummary],
        *,
        programs_total: int,
        programs_fresh: int,
        enrich_failures: int,
        matches: list[tuple[str, ProgramRecord]],
        stored: int,
        expired: int,
    ) -> dict:
        failed = [summary for summary in summaries if summary.status == "failed"]

        return {
            "status": "success",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "started_at": context.started_at.isoformat(),
            "stations": len(stations),
            "schedules_fetched": len(summaries) - len(failed),
            "schedules_failed": len(failed),
            "programs_built": programs_total,
            "programs_kept": programs_fresh,
            "on_air_lookups_failed": enrich_failures,
            "artists_matched": sorted({artist for artist, _ in matches}),
            "documents_stored": stored,
            "documents_expired": expired,
            "failed_schedules": [summary.to_dict() for summary in failed],
        }


async def fetch_and_process() -> dict:
    """
    Main entry point for schedule fetching with concurrency protection.

    Returns:
        Dictionary with fetch statistics or error/skip message.
    """
    if _fetch_lock.locked():
        logger.warning("Schedule fetch already in progress, skipping this request")
        return {
            "status": "skipped",
            "message": "Schedule fetch operation already in progress",
        }

    async with _fetch_lock:
        log_fetch_start(logger)

        try:
            roster = await load_roster(settings.roster_path)
        except (OSError, RosterFormatError) as exc:
            logger.error("Could not load roster %s: %s", settings.roster_path, exc)
            return {"error": f"Roster unavailable: {exc}"}

        try:
            async with create_client(settings.http_timeout_sec) as client:
                result = await ScheduleFetchPipeline(roster, client).run()
            log_fetch_end(logger)
            return result
        except RuntimeError as exc:
            logger.error("Schedule fetch failed: %s", exc, exc_info=True)
            return {"error": str(exc)}
        except Exception as exc:  # Catch-all to ensure API stability
            logger.error("Unexpected error during schedule fetch: %s", exc, exc_info=True)
            return {"error": str(exc)}
