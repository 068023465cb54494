from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from wireslacker.core.errors import DispatchError, FetchError
from wireslacker.core.notifier import SlackMessage

NODE_LISTING = "\n".join(
    [
        "<html><body>",
        '<p class="update"><span>Update every 20 minutes</span> <span>01 Jan 2023 12:00:00 JST</span></p>',
        "<script>",
        'dataList[0] = {id:"HB9TF-ND", dtmf_id:"12345", call_sign:"HB9TF", ana_dig:"digital", '
        'city:"Springfield", state:"IL", country:"US", freq:"439.125MHz", sql:"CSQ", '
        "lat:\"N:39 47&#39; 59\", lon:\"W:89 38&#39; 39\", comment:\"Tom &amp; Jerry\"};",
        'dataList[1] = {id:"ALPHA-ND", dtmf_id:"111", call_sign:"ALPHA", ana_dig:"analog", '
        'city:"Bern", state:"BE", country:"CH", freq:"", sql:"", lat:"", lon:"", comment:""};',
        "</script>",
        "</body></html>",
    ]
)

ROOM_LISTING = "\n".join(
    [
        "<html><body>",
        '<p class="update"><span>Update every 20 minutes</span> <span>01 Jan 2023 12:00:00 JST</span></p>',
        'dataList[0] = {id:"CH-SWISS-ROOM", dtmf_id:"21080", room_name:"Swiss Room", '
        'city:"Zurich", state:"ZH", country:"CH", comment:"Welcome"};',
        "</body></html>",
    ]
)


def build_status_page(
    entries: list[str],
    *,
    title: str = "WIRES-X NODE LOG",
    identity: str = "NODE: <b>HB9TF-ND , HB9TF(12345) </b>",
    connected: str | None = "CH-SWISS-ROOM",
) -> str:
    """Render a Wires-X log page the way the node software does."""
    head = "\n".join(
        [
            "<html>",
            f"<head><title>{title}</title></head>",
            '<body><a href="http://www.yaesu.com/">WIRES-X Ver. 1.550</a>',
        ]
    )
    parts = [head, identity]
    if connected is not None:
        parts.append(f"Connect to <b>{connected}</b>")
    parts.append("-" * 40)
    parts.extend(entries)
    return "<br>".join(parts) + "<br></body></html>"


class FakeFetcher:
    """Serve canned documents; an Exception value is raised instead."""

    def __init__(self, docs: dict[str, str | Exception]) -> None:
        self.docs = docs
        self.calls: list[str] = []

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        doc = self.docs.get(url)
        if doc is None:
            raise FetchError(url, "not found")
        if isinstance(doc, Exception):
            raise doc
        return doc


@dataclass
class RecordingNotifier:
    messages: list[SlackMessage] = field(default_factory=list)
    fail: bool = False
    on_post: Callable[[SlackMessage], None] | None = None

    async def post(self, message: SlackMessage) -> None:
        self.messages.append(message)
        if self.on_post is not None:
            self.on_post(message)
        if self.fail:
            raise DispatchError("webhook said no")


@pytest.fixture
def node_listing() -> str:
    return NODE_LISTING


@pytest.fixture
def room_listing() -> str:
    return ROOM_LISTING


@pytest.fixture
def status_page() -> Callable[..., str]:
    return build_status_page


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
