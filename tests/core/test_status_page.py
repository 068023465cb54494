from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from wireslacker.core.errors import FormatError
from wireslacker.core.formats import StatusPageParser, parse_timestamp


def test_parses_node_log_header_and_events(status_page) -> None:
    doc = status_page(
        [
            "2023/01/01 10:00:00  *-*-* Connected to ALPHA(111) *-*-*",
            "2023/01/01 09:00:00  Browser connected from 1.2.3.4",
        ]
    )

    snap = StatusPageParser().parse(doc, source="http://wires.test/log")

    assert snap.source == "http://wires.test/log"
    assert snap.log_type == "WIRES-X NODE LOG"
    assert snap.version == "WIRES-X Ver. 1.550"
    assert snap.entity_id == "HB9TF-ND, HB9TF(12345)"
    assert snap.connected_to == "CH-SWISS-ROOM"
    assert [e.message for e in snap.events] == [
        "Connected to ALPHA(111)",
        "Browser connected from 1.2.3.4",
    ]
    assert snap.events[0].timestamp == datetime(2023, 1, 1, 10, 0, 0, tzinfo=UTC)
    assert "*-*-*" in snap.events[0].raw


def test_parses_room_identity(status_page) -> None:
    doc = status_page(
        ["2023/01/01 10:00:00  HB9TF(12345) IN."],
        title="WIRES-X ROOM LOG",
        identity="ROOM: <b>Swiss Room , CH-SWISS-ROOM(21080) </b>",
        connected=None,
    )

    snap = StatusPageParser().parse(doc)

    assert snap.log_type == "WIRES-X ROOM LOG"
    assert snap.entity_id == "Swiss Room, CH-SWISS-ROOM(21080)"
    assert snap.connected_to == ""
    assert snap.events[0].message == "HB9TF(12345) IN."


def test_keeps_document_order(status_page) -> None:
    doc = status_page(
        [
            "2023/01/01 08:00:00  first",
            "2023/01/01 10:00:00  second",
            "2023/01/01 09:00:00  third",
        ]
    )

    snap = StatusPageParser().parse(doc)

    assert [e.message for e in snap.events] == ["first", "second", "third"]


def test_skips_lines_with_invalid_timestamp(status_page) -> None:
    doc = status_page(
        [
            "2023/13/45 10:00:00  impossible date",
            "2023/01/01 10:00:00  fine",
        ]
    )

    snap = StatusPageParser().parse(doc)

    assert [e.message for e in snap.events] == ["fine"]


def test_applies_time_zone() -> None:
    tz = timezone(timedelta(hours=9))
    snap = StatusPageParser(tz=tz).parse("<br>2023/01/01 10:00:00  hello<br>")

    assert snap.events[0].timestamp == datetime(2023, 1, 1, 1, 0, 0, tzinfo=UTC)


def test_first_title_wins() -> None:
    doc = "<title>NODE LOG</title><br><title>other</title><br>2023/01/01 10:00:00  x"

    snap = StatusPageParser().parse(doc)

    assert snap.log_type == "NODE LOG"


def test_raises_when_nothing_recognized() -> None:
    with pytest.raises(FormatError, match="no log header"):
        StatusPageParser().parse("<html><body>maintenance</body></html>", source="http://x/?key=s3cret")


def test_format_error_hides_credentials() -> None:
    with pytest.raises(FormatError) as excinfo:
        StatusPageParser().parse("nothing", source="http://x.test/log?key=s3cret")

    assert "s3cret" not in str(excinfo.value)


def test_header_only_page_is_not_an_error(status_page) -> None:
    snap = StatusPageParser().parse(status_page([]))

    assert snap.events == ()
    assert snap.entity_id


def test_parse_timestamp_rejects_other_formats() -> None:
    assert parse_timestamp("2023-01-01 10:00:00", UTC) is None
