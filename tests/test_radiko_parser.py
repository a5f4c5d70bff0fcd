import pytest
from lxml import etree

from radiko_watch.services.radiko_parser_service import parse_schedule, parse_station_list


STATION_LIST = """<?xml version="1.0" encoding="UTF-8"?>
<region>
  <stations ascii_name="HOKKAIDO TOHOKU" region_id="hokkaido-tohoku">
    <station>
      <id>HBC</id>
      <name>ＨＢＣラジオ</name>
      <banner>https://radiko.jp/res/banner/HBC/logo.png</banner>
      <area_id>JP1</area_id>
    </station>
  </stations>
  <stations ascii_name="KANTO" region_id="kanto">
    <station>
      <id>TBS</id>
      <name>TBSラジオ</name>
      <banner>https://radiko.jp/res/banner/TBS/logo.png</banner>
      <area_id>JP13</area_id>
    </station>
    <station>
      <id>BROKEN</id>
      <name>No banner</name>
      <area_id>JP13</area_id>
    </station>
  </stations>
</region>
""".encode("utf-8")

SCHEDULE = """<?xml version="1.0" encoding="UTF-8"?>
<radiko>
  <ttl>1800</ttl>
  <srvtime>1704067200</srvtime>
  <stations>
    <station id="TBS">
      <name>TBSラジオ</name>
      <progs>
        <date>20240101</date>
        <prog id="100" master_id="" ft="20240101050000" to="20240101060000" ftl="0500" tol="0600" dur="3600">
          <title>朝のニュース</title>
          <url>https://www.tbsradio.jp/</url>
          <desc />
          <info>&lt;p&gt;番組&lt;b&gt;情報&lt;/b&gt;&lt;/p&gt;</info>
          <pfm>出演者</pfm>
          <img>https://radiko.jp/res/program/100.jpg</img>
        </prog>
        <prog id="101" ft="20240101060000" to="20240101070000" dur="3600" title="attribute title">
          <title>element title</title>
        </prog>
      </progs>
    </station>
  </stations>
</radiko>
""".encode("utf-8")


def test_parse_station_list():
    stations = parse_station_list(STATION_LIST)

    assert [station.id for station in stations] == ["HBC", "TBS"]
    assert stations[0].name == "HBCラジオ"
    assert stations[1].banner_url == "https://radiko.jp/res/banner/TBS/logo.png"
    assert stations[1].area_id == "JP13"


def test_parse_station_list_with_unexpected_root():
    assert parse_station_list(b"<stations><station><id>X</id></station></stations>") == []


def test_parse_schedule_flattens_children_and_attributes():
    first, _ = parse_schedule(SCHEDULE)

    assert first["id"] == "100"
    assert first["ft"] == "20240101050000"
    assert first["to"] == "20240101060000"
    assert first["dur"] == "3600"
    assert first["title"] == "朝のニュース"
    assert first["info"] == "<p>番組<b>情報</b></p>"
    assert first["pfm"] == "出演者"
    assert first["img"] == "https://radiko.jp/res/program/100.jpg"
    assert first["desc"] is None
    assert "url" not in first


def test_attributes_win_over_child_elements():
    _, second = parse_schedule(SCHEDULE)
    assert second["title"] == "attribute title"


def test_parse_schedule_with_unexpected_root():
    assert parse_schedule(b"<other />") == []


def test_malformed_feed_raises():
    with pytest.raises(etree.XMLSyntaxError):
        parse_schedule(b"<radiko><stations>")
