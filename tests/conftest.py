"""
Global test configuration for radiko-watch.

Points the settings at a throwaway data directory before any application
module is imported, and provides shared fixtures.
"""
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

_DATA_DIR = Path(tempfile.mkdtemp(prefix="radiko_watch_tests_"))
os.environ.setdefault("DATABASE_PATH", str(_DATA_DIR / "radiko_watch.db"))
os.environ.setdefault("ROSTER_PATH", str(_DATA_DIR / "members.json"))

from radiko_watch.database import close_db, init_db
from radiko_watch.services.fetch_types import ProgramRecord, StationChannel


@pytest.fixture
def station() -> StationChannel:
    return StationChannel(
        id="TBS",
        name="TBSラジオ",
        banner_url="https://radiko.jp/res/banner/TBS/logo.png",
        area_id="JP13",
    )


@pytest.fixture
def make_program(station):
    """Factory for ProgramRecord values with sensible defaults."""

    def _make(**overrides) -> ProgramRecord:
        start = overrides.pop("start_time", datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc))
        values = {
            "station": station,
            "program_id": 1,
            "start_time": start,
            "end_time": start + timedelta(minutes=30),
            "duration": timedelta(minutes=30),
            "title": "ニュース",
        }
        values.update(overrides)
        return ProgramRecord(**values)

    return _make


@pytest.fixture
async def database(tmp_path):
    """Initialize a fresh SQLite database for one test."""
    await init_db(str(tmp_path / "test.db"))
    yield
    await close_db()
