from typing import Optional
import logging

from lxml import etree # type: ignore

from radiko_watch.services.fetch_types import StationChannel
from radiko_watch.utils.text import normalize_text

logger = logging.getLogger(__name__)

STATION_FIELDS = ("id", "name", "banner", "area_id")
PROGRAM_CHILD_FIELDS = ("title", "img", "info", "desc", "pfm")


def parse_station_list(xml: bytes) -> list[StationChannel]:
    """
    Parse the radiko station list (region/stations/station)

    Args:
        xml: Raw station list document

    Returns:
        Stations in document order

    Raises:
        etree.XMLSyntaxError: If XML is malformed
    """
    root = etree.fromstring(xml)
    logger.debug(f"  Station list loaded (root tag: {root.tag})")

    if root.tag != "region":
        logger.warning(f"Unexpected station list root <{root.tag}>; no stations parsed")
        return []

    stations = []
    for station in root.findall('stations/station'):
        values = {name: _get_text(station, name) for name in STATION_FIELDS}
        missing = [name for name, value in values.items() if value is None]
        if missing:
            logger.debug(f"Skipping station without {', '.join(missing)}: {values.get('id')}")
            continue

        stations.append(StationChannel(
            id=values["id"],
            name=normalize_text(values["name"]),
            banner_url=values["banner"],
            area_id=values["area_id"],
        ))

    logger.info(f"Station list parsing complete: {len(stations)} stations")
    return stations


def parse_schedule(xml: bytes) -> list[dict[str, Optional[str]]]:
    """
    Flatten every <prog> of a station schedule into a field map

    Child element text is collected first and the element's attributes are
    merged over it, so attributes win when a name appears in both.

    Args:
        xml: Raw schedule document (radiko/stations/station/progs/prog)

    Returns:
        One field map per program, in document order

    Raises:
        etree.XMLSyntaxError: If XML is malformed
    """
    root = etree.fromstring(xml)

    if root.tag != "radiko":
        logger.warning(f"Unexpected schedule root <{root.tag}>; no programs parsed")
        return []

    entries = [_flatten_program(prog) for prog in root.findall('stations/station/progs/prog')]
    logger.debug(f"    Found {len(entries)} schedule entries")
    return entries


def _flatten_program(prog: etree._Element) -> dict[str, Optional[str]]:
    fields: dict[str, Optional[str]] = {}
    for child in prog:
        if isinstance(child.tag, str) and child.tag in PROGRAM_CHILD_FIELDS:
            fields[child.tag] = child.text or None
    fields.update((name, value) for name, value in prog.attrib.items())
    return fields


def _get_text(element: etree._Element, tag: str, default: Optional[str] = None) -> Optional[str]:
    """Safely extract text from XML element"""
    child = element.find(tag)
    if child is None or not child.text:
        return default
    return child.text
