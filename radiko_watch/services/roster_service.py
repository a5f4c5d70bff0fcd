"""
Roster loading

The roster is a JSON object of group name -> member name -> list of aliases.
The whole document is NFKC-normalized before decoding so aliases compare
against normalized program text.
"""
import json
import logging
from pathlib import Path

import aiofiles

from radiko_watch.services.artist_matcher import Roster
from radiko_watch.utils.text import normalize_text


logger = logging.getLogger(__name__)


class RosterFormatError(ValueError):
    """Raised when the roster document does not have the two-level shape"""
    pass


def parse_roster(text: str) -> Roster:
    """
    Decode and validate a roster document

    Args:
        text: JSON text

    Returns:
        Group name -> member name -> alias list

    Raises:
        RosterFormatError: If the JSON is invalid or not two levels deep
    """
    try:
        data = json.loads(normalize_text(text))
    except json.JSONDecodeError as exc:
        raise RosterFormatError(f"Roster is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise RosterFormatError("Roster must be a JSON object of groups")

    for group_name, members in data.items():
        if not isinstance(members, dict):
            raise RosterFormatError(f"Group '{group_name}' must map member names to aliases")
        for member_name, aliases in members.items():
            if not isinstance(aliases, list) or not all(isinstance(alias, str) for alias in aliases):
                raise RosterFormatError(
                    f"Member '{group_name}/{member_name}' must have a list of alias strings"
                )

    return data


async def load_roster(path: Path | str) -> Roster:
    """
    Read the roster file

    Raises:
        OSError: If the file can't be read
        RosterFormatError: If the document is malformed
    """
    path = Path(path)
    logger.info(f"Loading roster from {path}")

    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        text = await f.read()

    roster = parse_roster(text)
    member_count = sum(len(members) for members in roster.values())
    logger.info(f"Roster loaded: {len(roster)} groups, {member_count} members")
    return roster
