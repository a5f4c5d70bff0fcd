"""
Shared dataclasses used across the radiko fetching pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Sequence

from radiko_watch.utils.timezone import format_station_time


# Retention marker for stored documents
PROGRAM_RETENTION = timedelta(days=14)

APP_URL_TEMPLATE = (
    "radiko://radiko.onelink.me/?deep_link_sub1={station_id}"
    "&deep_link_sub2={start}&deep_link_value={program_id}"
)
TIMEFREE_URL_TEMPLATE = "https://radiko.jp/#!/ts/{station_id}/{start}"


@dataclass(frozen=True, slots=True)
class StationChannel:
    """A broadcast station from the radiko station list."""
    id: str
    name: str
    banner_url: str
    area_id: str

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "banner_url": self.banner_url,
            "area_id": self.area_id,
        }


@dataclass(frozen=True, slots=True)
class OnAirTrack:
    """A music cue that played during a program."""
    artist_name: str
    track_title: str
    artwork_url: str
    offset_from_start: timedelta

    def to_document(self) -> dict[str, Any]:
        return {
            "artist_name": self.artist_name,
            "track_title": self.track_title,
            "artwork_url": self.artwork_url,
            "offset_from_start": int(self.offset_from_start.total_seconds()),
        }


@dataclass(frozen=True, slots=True)
class ProgramRecord:
    """
    One scheduled broadcast slot for one station.

    Instants are timezone-aware UTC. `expire_at` is derived from `end_time` and
    cannot be set independently.
    """
    station: StationChannel
    program_id: int
    start_time: datetime
    end_time: datetime
    duration: timedelta
    title: str
    image_url: str | None = None
    info: str | None = None
    description: str | None = None
    performers: str | None = None
    on_air_tracks: tuple[OnAirTrack, ...] = field(default_factory=tuple)

    @property
    def expire_at(self) -> datetime:
        return self.end_time + PROGRAM_RETENTION

    @property
    def key(self) -> tuple[str, int]:
        """Unique identity of a program across schedule dates."""
        return self.station.id, self.program_id

    @property
    def app_url_scheme(self) -> str:
        """Deep link that opens this program in the radiko app."""
        return APP_URL_TEMPLATE.format(
            station_id=self.station.id,
            start=format_station_time(self.start_time),
            program_id=self.program_id,
        )

    @property
    def timefree_url(self) -> str:
        """Time-free playback URL handed to external downloaders."""
        return TIMEFREE_URL_TEMPLATE.format(
            station_id=self.station.id,
            start=format_station_time(self.start_time),
        )

    def text_fields(self) -> tuple[str | None, ...]:
        """Free-text fields searched by the artist matcher."""
        return self.title, self.description, self.info, self.performers

    def has_ended(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return self.end_time <= now

    def with_tracks(self, tracks: Sequence[OnAirTrack]) -> ProgramRecord:
        return replace(self, on_air_tracks=tuple(tracks))

    def to_document(self) -> dict[str, Any]:
        """Serialized shape stored in the document table."""
        return {
            "station": self.station.to_document(),
            "id": self.program_id,
            "ft": self.start_time.isoformat(),
            "to": self.end_time.isoformat(),
            "dur": int(self.duration.total_seconds()),
            "title": self.title,
            "img": self.image_url,
            "info": self.info,
            "desc": self.description,
            "pfm": self.performers,
            "on_air_music": [track.to_document() for track in self.on_air_tracks],
            "expire_at": self.expire_at.isoformat(),
        }


__all__ = ["StationChannel", "OnAirTrack", "ProgramRecord", "PROGRAM_RETENTION"]
