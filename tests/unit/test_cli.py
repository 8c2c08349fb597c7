"""Tests for the command-line interface."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from contentchecker.cli import EXIT_CAPTURE_FAILED, EXIT_FATAL, EXIT_OK, main, parse_args
from contentchecker.domain.models import CaptureTarget, Changed, RunReport
from contentchecker.storage.base import StoreError
from contentchecker.watcher.checker import CaptureFailedError, ContentChecker


def test_parse_check() -> None:
    args = parse_args(["-c", "cfg.yaml", "-v", "check"])
    assert args.command == "check"
    assert args.config == Path("cfg.yaml")
    assert args.verbose is True


def test_invalid_config_exits_fatal(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    config = tmp_path / "c.yaml"
    config.write_text("watch:\n  url: https://example.com\n  content_selector: '#p'\n  inform_on_error: 'maybe'\n")
    with pytest.raises(SystemExit) as excinfo:
        main(["-c", str(config), "state"])
    assert excinfo.value.code == EXIT_FATAL


def test_state_on_empty_store(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level("INFO", logger="contentchecker.cli")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("APIFY_ACTOR_TASK_ID", raising=False)
    monkeypatch.delenv("APIFY_ACT_ID", raising=False)
    config = tmp_path / "c.yaml"
    config.write_text(
        "watch:\n  url: https://example.com\n  content_selector: '#p'\n"
        f"store:\n  directory: '{tmp_path / 'stores'}'\n  watch_key: t1\n"
    )
    with pytest.raises(SystemExit) as excinfo:
        main(["-c", str(config), "state"])
    assert excinfo.value.code == EXIT_OK
    out = capsys.readouterr().out
    assert "content-checker-store-t1" in out
    assert "No run recorded yet." in out
    assert str(tmp_path / "stores" / "content-checker-store-t1") in caplog.text


@pytest.fixture
def check_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    for name in ("APIFY_ACTOR_TASK_ID", "APIFY_ACT_ID", "APIFY_TOKEN", "SLACK_WEBHOOK_URL"):
        monkeypatch.delenv(name, raising=False)
    config = tmp_path / "c.yaml"
    config.write_text(
        "watch:\n  url: https://example.com\n  content_selector: '#p'\n"
        f"store:\n  directory: '{tmp_path / 'stores'}'\n  watch_key: t1\n"
    )
    return config


class TestCheckExitCodes:
    def test_capture_failure_exits_one(self, check_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        run = AsyncMock(
            side_effect=CaptureFailedError("Cannot get content", target=CaptureTarget.CONTENT)
        )
        monkeypatch.setattr(ContentChecker, "run", run)
        with pytest.raises(SystemExit) as excinfo:
            main(["-c", str(check_config), "check"])
        assert excinfo.value.code == EXIT_CAPTURE_FAILED
        run.assert_awaited_once()

    def test_store_error_exits_fatal(self, check_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            ContentChecker, "run", AsyncMock(side_effect=StoreError("disk gone", store_name="s"))
        )
        with pytest.raises(SystemExit) as excinfo:
            main(["-c", str(check_config), "check"])
        assert excinfo.value.code == EXIT_FATAL

    def test_dispatch_failure_still_exits_ok(
        self,
        check_config: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        old_png: bytes,
        new_png: bytes,
    ) -> None:
        report = RunReport(
            decision=Changed(
                previous_text="Hello", current_text="World",
                previous_image=old_png, current_image=new_png,
            ),
            dispatch_errors=["No mail API token configured"],
        )
        monkeypatch.setattr(ContentChecker, "run", AsyncMock(return_value=report))
        with pytest.raises(SystemExit) as excinfo:
            main(["-c", str(check_config), "check"])
        assert excinfo.value.code == EXIT_OK
        out = capsys.readouterr().out
        assert "Result: changed" in out
        assert "notification failed: No mail API token configured" in out
