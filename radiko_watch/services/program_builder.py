"""
Program record builder

Turns the flattened field map of one schedule <prog> element into a typed
ProgramRecord. The field map never leaves this module.
"""
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
import logging

from radiko_watch.services.fetch_types import ProgramRecord, StationChannel
from radiko_watch.utils.markup import markup_to_text
from radiko_watch.utils.text import normalize_optional, normalize_text
from radiko_watch.utils.timezone import DateFormatError, parse_station_time

logger = logging.getLogger(__name__)

ProgramFields = Mapping[str, str | None]


class ProgramBuildError(ValueError):
    """Raised when a schedule entry cannot become a ProgramRecord"""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class MissingFieldError(ProgramBuildError):
    """A required field is absent from the schedule entry"""

    def __init__(self, field: str) -> None:
        super().__init__(field, f"{field} not found.")


class FieldParseError(ProgramBuildError):
    """A field is present but its value cannot be parsed"""

    def __init__(self, field: str, value: str) -> None:
        super().__init__(field, f"Invalid value for {field}: '{value}'")
        self.value = value


def _require(fields: ProgramFields, name: str) -> str:
    value = fields.get(name)
    if value is None:
        raise MissingFieldError(name)
    return value


def _parse_int(name: str, value: str, *, signed: bool) -> int:
    digits = value[1:] if signed and value[:1] in ("+", "-") else value
    if not digits or not digits.isascii() or not digits.isdigit():
        raise FieldParseError(name, value)
    return int(value)


def _parse_time(name: str, value: str) -> datetime:
    try:
        return parse_station_time(value)
    except DateFormatError as exc:
        raise FieldParseError(name, value) from exc


def _convert_markup(value: str | None) -> str | None:
    if value is None:
        return None
    return normalize_text(markup_to_text(value))


def build_program(fields: ProgramFields, station: StationChannel) -> ProgramRecord:
    """
    Build a ProgramRecord from a flattened schedule entry

    Args:
        fields: Field name to optional text, attributes merged over child elements
        station: Station the schedule belongs to

    Returns:
        The program record

    Raises:
        MissingFieldError: If id, ft, to, dur or title is absent
        FieldParseError: If id, dur, ft or to cannot be parsed
    """
    program_id = _parse_int("id", _require(fields, "id"), signed=False)
    start_time = _parse_time("ft", _require(fields, "ft"))
    end_time = _parse_time("to", _require(fields, "to"))
    duration = timedelta(seconds=_parse_int("dur", _require(fields, "dur"), signed=True))
    title = normalize_text(_require(fields, "title"))

    return ProgramRecord(
        station=station,
        program_id=program_id,
        start_time=start_time,
        end_time=end_time,
        duration=duration,
        title=title,
        image_url=fields.get("img"),
        info=_convert_markup(fields.get("info")),
        description=_convert_markup(fields.get("desc")),
        performers=normalize_optional(fields.get("pfm")),
    )


def build_programs(
    entries: Iterable[ProgramFields],
    station: StationChannel,
) -> list[ProgramRecord]:
    """Build every buildable entry, skipping the ones that fail."""
    programs = []
    skipped = 0
    for entry in entries:
        try:
            programs.append(build_program(entry, station))
        except ProgramBuildError as exc:
            skipped += 1
            logger.debug("Skipping schedule entry on %s: %s", station.id, exc)

    if skipped:
        logger.info(
            "Skipped %s incomplete schedule entries for %s (%s built)",
            skipped,
            station.id,
            len(programs),
        )
    return programs
