"""
Data merging utilities

This module handles merging of programs fetched from overlapping schedule dates.
"""
import logging
from collections.abc import MutableMapping, Sequence

from radiko_watch.services.fetch_types import ProgramRecord

logger = logging.getLogger(__name__)


def merge_programs(
    existing_programs: MutableMapping[tuple[str, int], ProgramRecord],
    new_programs: Sequence[ProgramRecord]
) -> tuple[MutableMapping[tuple[str, int], ProgramRecord], int]:
    """
    Merge new programs into existing program dictionary.

    radiko's broadcast day runs 05:00-29:00, so late-night programs can be
    listed under two schedule dates. The first occurrence wins.

    Args:
        existing_programs: Dictionary of existing programs (program key -> ProgramRecord)
        new_programs: Iterable of new programs to merge

    Returns:
        Tuple of (updated_programs_dict, count_of_new_programs_added)
    """
    new_count = 0

    for program in new_programs:
        program_key = create_program_key(program)
        if program_key not in existing_programs:
            existing_programs[program_key] = program
            new_count += 1
        else:
            logger.debug(
                "Skipping duplicate program: %s on %s",
                program.title,
                program.station.id,
            )

    return existing_programs, new_count


def create_program_key(program: ProgramRecord) -> tuple[str, int]:
    """
    Create a unique key for a program based on station and program id.

    Args:
        program: ProgramRecord instance

    Returns:
        (station id, program id)
    """
    return program.key
