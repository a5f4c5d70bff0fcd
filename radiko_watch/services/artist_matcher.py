"""
Artist matching

Scans a program's free-text fields against a two-level roster
(group -> member -> aliases) with plain substring containment.
"""
from collections.abc import Mapping, Sequence

from radiko_watch.services.fetch_types import ProgramRecord


Roster = Mapping[str, Mapping[str, Sequence[str]]]

# Bucket of graduated members: matched by member alias, never by group name
RESERVED_GROUP = "OG"

# "高橋愛" is a prefix of the unrelated "高橋愛子"
DISAMBIGUATED_MEMBER = "高橋愛"
DISAMBIGUATION_NAME = "高橋愛子"


def _appears_in(needle: str, fields: Sequence[str | None]) -> bool:
    return any(text is not None and needle in text for text in fields)


def search_artists(program: ProgramRecord, roster: Roster) -> list[str]:
    """
    Find roster identities mentioned by a program

    Args:
        program: Program whose title, description, info and performers are searched
        roster: Group name -> member name -> aliases

    Returns:
        Matched group and member names in discovery order
    """
    fields = program.text_fields()
    found: list[str] = []

    for group_name, members in roster.items():
        if group_name != RESERVED_GROUP and _appears_in(group_name, fields):
            found.append(group_name)

        for member_name, aliases in members.items():
            for alias in aliases:
                if not _appears_in(alias, fields):
                    continue
                if member_name == DISAMBIGUATED_MEMBER and _appears_in(DISAMBIGUATION_NAME, fields):
                    continue
                found.append(member_name)
                break

    return found
