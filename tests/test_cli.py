from __future__ import annotations

import pytest

from wireslacker.cli import main, parse_config
from wireslacker.core.formats.directory_listing import HemisphereConvention

WEBHOOK = "https://hooks.slack.test/services/T000/B000/XXXX"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("WIRESLACKER_TARGETS", "WIRESLACKER_WEBHOOK"):
        monkeypatch.delenv(name, raising=False)


def test_missing_targets_exits_with_usage_error(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--webhook", WEBHOOK])

    assert excinfo.value.code == 2
    assert "Error: provide at least one target" in capsys.readouterr().err


def test_missing_webhook_exits_with_usage_error(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--targets", "http://node.test/log"])

    assert excinfo.value.code == 2
    assert "webhook" in capsys.readouterr().err


def test_parse_config_flags() -> None:
    cfg = parse_config(
        [
            "--targets",
            "http://a.test/log,http://b.test/log",
            "--webhook",
            WEBHOOK,
            "--read-interval",
            "5",
            "--dry",
            "--timezone",
            "Asia/Tokyo",
            "-v",
            "--no-rooms",
            "--hemisphere",
            "standard",
            "--global-watermark",
        ]
    )

    assert cfg.targets == ("http://a.test/log", "http://b.test/log")
    assert cfg.read_interval == 5
    assert cfg.dry and cfg.verbose
    assert cfg.timezone == "Asia/Tokyo"
    assert cfg.room_directory_url is None
    assert cfg.hemisphere is HemisphereConvention.STANDARD
    assert cfg.per_source_watermark is False


def test_malformed_target_exits_with_usage_error(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--targets", "http://[::1/log", "--webhook", WEBHOOK])

    assert excinfo.value.code == 2
    assert "invalid URL" in capsys.readouterr().err
