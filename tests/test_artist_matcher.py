import copy

from radiko_watch.services.artist_matcher import search_artists


def test_member_alias_matches_without_group_name(make_program):
    roster = {"GroupA": {"Mem1": ["mem1alias"]}}
    program = make_program(title="mem1alias live")

    result = search_artists(program, roster)

    assert "Mem1" in result
    assert "GroupA" not in result


def test_group_name_and_members_can_both_match(make_program):
    roster = {"GroupA": {"Mem1": ["mem1"], "Mem2": ["mem2"]}}
    program = make_program(title="GroupA special", performers="mem2")

    assert search_artists(program, roster) == ["GroupA", "Mem2"]


def test_every_text_field_is_searched(make_program):
    roster = {"G": {"A": ["alpha"], "B": ["beta"], "C": ["gamma"], "D": ["delta"]}}
    program = make_program(
        title="alpha",
        description="beta",
        info="gamma",
        performers="delta",
    )

    assert search_artists(program, roster) == ["A", "B", "C", "D"]


def test_absent_fields_do_not_match(make_program):
    roster = {"G": {"A": ["alpha"]}}
    program = make_program(title="news", description=None, info=None, performers=None)

    assert search_artists(program, roster) == []


def test_first_matching_alias_records_member_once(make_program):
    roster = {"G": {"Mem1": ["one", "uno", "eins"]}}
    program = make_program(title="one uno eins")

    assert search_artists(program, roster) == ["Mem1"]


def test_reserved_group_never_matches_by_name(make_program):
    roster = {"OG": {"Old": ["oldie"]}}
    program = make_program(title="OG night")

    assert search_artists(program, roster) == []


def test_reserved_group_members_still_match(make_program):
    roster = {"OG": {"Old": ["oldie"]}}
    program = make_program(title="OG night with oldie")

    assert search_artists(program, roster) == ["Old"]


def test_disambiguation_suppresses_longer_name(make_program):
    roster = {"モーニング娘。": {"高橋愛": ["高橋愛", "愛"]}}
    program = make_program(title="高橋愛子のラジオ")

    assert search_artists(program, roster) == []


def test_disambiguation_checks_all_fields(make_program):
    roster = {"モーニング娘。": {"高橋愛": ["高橋愛"]}}
    program = make_program(title="高橋愛のラジオ", performers="高橋愛子")

    assert search_artists(program, roster) == []


def test_disambiguated_member_matches_normally(make_program):
    roster = {"モーニング娘。": {"高橋愛": ["高橋愛", "愛"]}}
    program = make_program(title="高橋愛のラジオ")

    assert search_artists(program, roster) == ["高橋愛"]


def test_disambiguation_applies_only_to_that_member(make_program):
    roster = {"G": {"高橋": ["高橋"]}}
    program = make_program(title="高橋愛子のラジオ")

    assert search_artists(program, roster) == ["高橋"]


def test_inputs_are_not_mutated(make_program):
    roster = {"GroupA": {"Mem1": ["mem1"]}, "OG": {"Old": ["old"]}}
    snapshot = copy.deepcopy(roster)
    program = make_program(title="GroupA mem1 old")

    assert search_artists(program, roster) == ["GroupA", "Mem1", "Old"]
    assert roster == snapshot
    assert program.title == "GroupA mem1 old"


def test_empty_roster(make_program):
    assert search_artists(make_program(), {}) == []
