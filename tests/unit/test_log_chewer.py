"""Unit tests for LocalLogChewer and the overview log parser."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

import pytest

from arbwatch.bridge.transport import BridgeError
from arbwatch.core.log_chewer import LocalLogChewer, LogParseError, OverviewLogParser
from arbwatch.core.reconstructor import TreeReconstructor
from arbwatch.models.trees import local_tree

LOG_MTIME = 1_500_000_000


def _write_log(directory: Path, name: str = "run.log", **overview) -> Path:
    path = directory / name
    path.write_text(json.dumps({"failures": [], **overview}), encoding="utf-8")
    os.utime(path, (LOG_MTIME, LOG_MTIME))
    return path


class _FailingBridge:
    def __init__(self) -> None:
        self.attempts = 0

    def send(self, notification) -> None:
        self.attempts += 1
        raise BridgeError("feed is down")


class TestOverviewLogParser:
    def test_parses_overview(self, tmp_dir):
        path = _write_log(tmp_dir, failures=["a", "b"])
        parsed = OverviewLogParser().parse(path)
        assert parsed.overview.failures == ["a", "b"]
        assert parsed.overview.failed is True
        assert parsed.processed_log == path.read_text(encoding="utf-8")

    def test_camel_case_flag(self, tmp_dir):
        path = _write_log(tmp_dir, failureIndicated=True)
        assert OverviewLogParser().parse(path).overview.failure_indicated is True

    def test_not_json(self, tmp_dir):
        path = tmp_dir / "bad.log"
        path.write_text("TEST-START | something", encoding="utf-8")
        with pytest.raises(LogParseError):
            OverviewLogParser().parse(path)

    def test_undecodable_bytes(self, tmp_dir):
        path = tmp_dir / "latin.log"
        path.write_bytes(b'{"failures": ["\xff"]}')
        with pytest.raises(LogParseError):
            OverviewLogParser().parse(path)

    def test_unknown_encoding(self, tmp_dir):
        path = _write_log(tmp_dir)
        with pytest.raises(LogParseError):
            OverviewLogParser(encoding="no-such-codec").parse(path)

    def test_configured_encoding(self, tmp_dir):
        path = tmp_dir / "latin.log"
        path.write_bytes(b'{"failures": ["\xff"]}')
        parsed = OverviewLogParser(encoding="latin-1").parse(path)
        assert parsed.overview.failures == ["\u00ff"]

    def test_not_an_object(self, tmp_dir):
        path = tmp_dir / "list.log"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        with pytest.raises(LogParseError):
            OverviewLogParser().parse(path)


class TestChew:
    def test_first_chew_allocates_one(self, store, bridge, tmp_dir):
        chewer = LocalLogChewer(store, bridge, clock=lambda: 1234.5)
        assert chewer.chew(_write_log(tmp_dir)) == 1

    def test_chewing_twice_yields_two_pushes(self, store, tmp_dir):
        chewer = LocalLogChewer(store)
        path = _write_log(tmp_dir)
        assert chewer.chew(path) == 1
        assert chewer.chew(path) == 2
        assert [r["s:r"]["id"] for r in store.get_recent_pushes("logal")] == [2, 1]

    def test_record_written_under_local_tree(self, store, tmp_dir):
        path = _write_log(tmp_dir, failures=["x"])
        push_id = LocalLogChewer(store).chew(path)
        record = store.get_push("logal", push_id)
        assert sorted(record) == sorted(["s:r", f"s:b:{path}", f"s:l:{path}"])
        assert record["s:r"]["date"] == LOG_MTIME
        assert json.loads(record[f"s:b:{path}"])["state"] == "testfailed"
        assert record[f"s:l:{path}"] == path.read_text(encoding="utf-8")

    def test_stored_record_reconstructs(self, store, tmp_dir):
        push_id = LocalLogChewer(store).chew(_write_log(tmp_dir))
        root = TreeReconstructor(local_tree()).reconstruct(store.get_push("logal", push_id))
        assert root.push.id == push_id
        assert root.builds[0].state == "success"

    def test_scrape_metadata(self, store, tmp_dir):
        LocalLogChewer(store, clock=lambda: 1234.5).chew(_write_log(tmp_dir))
        scrape = store.get_tree_scrape("Logal")
        assert scrape == {
            "tree_name": "Logal",
            "is_local": True,
            "timestamp": 1_234_500,
            "rev": 0,
            "high_push_id": 1,
        }

    def test_custom_tree(self, store, tmp_dir):
        chewer = LocalLogChewer(store, tree_id="mine", tree_name="Mine")
        chewer.chew(_write_log(tmp_dir))
        assert store.get_all_tree_ids() == ["mine"]
        assert store.get_tree_scrape("Mine")["high_push_id"] == 1

    def test_parse_failure_writes_nothing(self, store, tmp_dir):
        path = tmp_dir / "bad.log"
        path.write_text("not json", encoding="utf-8")
        with pytest.raises(LogParseError):
            LocalLogChewer(store).chew(path)
        assert store.get_all_tree_ids() == []


class TestNotification:
    def test_notification_carries_sideband(self, store, bridge, tmp_dir):
        path = _write_log(tmp_dir)
        push_id = LocalLogChewer(store, bridge, clock=lambda: 2.0).chew(path)
        message = json.loads(bridge.receive())
        assert message["type"] == "push"
        assert message["treeName"] == "Logal"
        assert message["pushId"] == push_id
        assert message["scrapeTimestampMillis"] == 2000
        assert message["revForTimestamp"] == 0
        assert sorted(message["keysAndValues"]) == sorted(
            ["s:r", f"s:b:{path}", f"s:l:{path}"]
        )

    def test_notification_failure_still_returns_push_id(self, store, tmp_dir, caplog):
        failing = _FailingBridge()
        chewer = LocalLogChewer(store, failing)
        with caplog.at_level(logging.WARNING, logger="arbwatch.core.log_chewer"):
            push_id = chewer.chew(_write_log(tmp_dir))
        assert push_id == 1
        assert failing.attempts == 1
        assert store.get_push("logal", 1) is not None
        assert "Problem announcing push 1" in caplog.text

    def test_no_bridge_skips_notification(self, store, tmp_dir):
        assert LocalLogChewer(store, None).chew(_write_log(tmp_dir)) == 1
