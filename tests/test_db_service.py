import json
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select

from radiko_watch.database import session_scope
from radiko_watch.models import MatchedProgram, Station
from radiko_watch.schemas import ArtistProgramsRequest
from radiko_watch.services.db_service import delete_expired_matches, store_matches, store_stations
from radiko_watch.services.fetch_types import OnAirTrack, StationChannel
from radiko_watch.services.match_query_service import get_artist_programs, list_artists


async def _count(model) -> int:
    async with session_scope() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar_one()


async def test_store_stations_upserts(database, station):
    renamed = StationChannel(id=station.id, name="TBS", banner_url=station.banner_url, area_id="JP13")

    async with session_scope() as session:
        await store_stations(session, [station])
    async with session_scope() as session:
        await store_stations(session, [renamed])

    async with session_scope() as session:
        stored = (await session.execute(select(Station))).scalars().all()
    assert [(row.id, row.name) for row in stored] == [("TBS", "TBS")]


async def test_store_matches_one_document_per_artist(database, make_program):
    program = make_program(program_id=7, title="GroupA live")

    async with session_scope() as session:
        assert await store_matches(session, [("GroupA", program), ("Mem1", program)]) == 2
    async with session_scope() as session:
        # Re-running a cycle updates instead of duplicating
        assert await store_matches(session, [("GroupA", program.with_tracks([]))]) == 1

    assert await _count(MatchedProgram) == 2

    async with session_scope() as session:
        row = (await session.execute(
            select(MatchedProgram).where(MatchedProgram.artist == "GroupA")
        )).scalar_one()
    document = json.loads(row.document)
    assert document["id"] == 7
    assert document["dur"] == 1800
    assert row.app_url == program.app_url_scheme
    assert row.expire_at == program.expire_at.isoformat()


async def test_delete_expired_matches(database, make_program):
    old = make_program(program_id=1, start_time=datetime(2024, 1, 1, tzinfo=timezone.utc))
    recent = make_program(program_id=2, start_time=datetime(2024, 2, 1, tzinfo=timezone.utc))

    async with session_scope() as session:
        await store_matches(session, [("A", old), ("A", recent)])

    now = old.expire_at + timedelta(seconds=1)
    async with session_scope() as session:
        assert await delete_expired_matches(session, now) == 1

    async with session_scope() as session:
        remaining = (await session.execute(select(MatchedProgram.program_id))).scalars().all()
    assert remaining == [2]


async def test_query_artist_programs(database, make_program):
    start = datetime.now(timezone.utc).replace(microsecond=0)
    track = OnAirTrack(
        artist_name="GroupA",
        track_title="Song",
        artwork_url="https://example.com/a.jpg",
        offset_from_start=timedelta(minutes=5),
    )
    later = make_program(program_id=2, start_time=start + timedelta(hours=2), title="second")
    earlier = make_program(program_id=1, start_time=start, title="first").with_tracks([track])

    async with session_scope() as session:
        await store_matches(session, [("GroupA", later), ("GroupA", earlier), ("Mem1", earlier)])

    async with session_scope() as session:
        response = await get_artist_programs(
            session,
            ArtistProgramsRequest(artist="GroupA", timezone="UTC"),
        )
        artists = await list_artists(session)

    assert response.total_programs == 2
    assert [program.title for program in response.programs] == ["first", "second"]
    first = response.programs[0]
    assert first.start_time == start.isoformat()
    assert first.duration == 1800
    assert first.on_air_music[0].offset_from_start == 300
    assert first.app_url == earlier.app_url_scheme
    assert [(summary.artist, summary.programs) for summary in artists.artists] == [("GroupA", 2), ("Mem1", 1)]


async def test_query_hides_expired_programs(database, make_program):
    expired = make_program(program_id=1, start_time=datetime(2020, 1, 1, tzinfo=timezone.utc))

    async with session_scope() as session:
        await store_matches(session, [("GroupA", expired)])

    async with session_scope() as session:
        hidden = await get_artist_programs(session, ArtistProgramsRequest(artist="GroupA"))
        shown = await get_artist_programs(
            session,
            ArtistProgramsRequest(artist="GroupA", include_expired=True),
        )

    assert hidden.total_programs == 0
    assert shown.total_programs == 1
    assert shown.programs[0].start_time == "2020-01-01T09:00:00+09:00"
