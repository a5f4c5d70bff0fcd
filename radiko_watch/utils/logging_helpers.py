"""
Structured logging helpers for consistent log formatting.
"""
import logging
from datetime import datetime, timezone


def log_section_start(logger: logging.Logger, section_name: str) -> None:
    """
    Log the start of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being started
    """
    logger.info(f"Starting: {section_name}")


def log_section_end(logger: logging.Logger, section_name: str) -> None:
    """
    Log the end of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being ended
    """
    logger.info(f"Completed: {section_name}")


def log_station_processing(logger: logging.Logger, idx: int, total: int, station_id: str) -> None:
    """
    Log station processing header.

    Args:
        logger: Logger instance
        idx: Current station index (1-based)
        total: Total number of stations
        station_id: Station being processed
    """
    logger.info(f"Processing station {idx}/{total}: {station_id}")


def log_fetch_start(logger: logging.Logger) -> None:
    """Log fetch cycle start."""
    logger.info(f"Schedule fetch started at {datetime.now(timezone.utc).isoformat()}")


def log_fetch_end(logger: logging.Logger) -> None:
    """Log fetch cycle end."""
    logger.info(f"Schedule fetch completed at {datetime.now(timezone.utc).isoformat()}")


def log_match_summary(
    logger: logging.Logger,
    programs_count: int,
    matched_programs: int,
    documents_count: int
) -> None:
    """
    Log artist matching summary.

    Args:
        logger: Logger instance
        programs_count: Number of programs searched
        matched_programs: Number of programs with at least one match
        documents_count: Number of (artist, program) documents produced
    """
    logger.info(
        f"Match summary - Programs: {programs_count}, Matched: {matched_programs}, "
        f"Documents: {documents_count}"
    )
