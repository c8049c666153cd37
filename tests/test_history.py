"""Tests for triage history persistence."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from podtriage.storage import atomic_write_json
from podtriage.triage.history import HistoryStore
from podtriage.triage.models import HistoryEntry, Severity, TriageResult


def _entry(timestamp: str, *names: str) -> HistoryEntry:
    return HistoryEntry(
        timestamp=timestamp,
        problematic_pods=[
            TriageResult(
                name=n,
                namespace="default",
                phase="Running",
                severity=Severity.CRITICAL,
                reasons=["CrashLoopBackOff"],
            )
            for n in names
        ],
    )


class TestHistoryStoreLoad:
    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert HistoryStore(str(tmp_path / "nope.json")).load() == []

    def test_corrupted_json_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "history.json"
        path.write_text("not valid json{{{")
        assert HistoryStore(str(path)).load() == []

    def test_wrong_shape_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "history.json"
        path.write_text(json.dumps({"timestamp": "x"}))
        assert HistoryStore(str(path)).load() == []

    def test_entry_with_bad_severity_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "history.json"
        path.write_text(
            json.dumps(
                [
                    {
                        "timestamp": "2026-10-18T08:00:00+00:00",
                        "problematic_pods": [
                            {"name": "a", "namespace": "ns", "phase": "Running", "severity": "Catastrophic"}
                        ],
                    }
                ]
            )
        )
        assert HistoryStore(str(path)).load() == []

    def test_unreadable_path_is_empty(self, tmp_path: Path) -> None:
        # A directory where the file should be raises IsADirectoryError on open
        path = tmp_path / "history.json"
        path.mkdir()
        assert HistoryStore(str(path)).load() == []


class TestHistoryStoreSave:
    def test_round_trip_preserves_order(self, tmp_path: Path) -> None:
        store = HistoryStore(str(tmp_path / "history.json"))
        history = [_entry("2026-10-17T08:00:00+00:00", "a"), _entry("2026-10-18T08:00:00+00:00", "b", "c")]

        store.save(history)

        assert store.load() == history

    def test_file_is_plain_json(self, tmp_path: Path) -> None:
        path = tmp_path / "history.json"
        HistoryStore(str(path)).save([_entry("2026-10-18T08:00:00+00:00", "a")])

        data = json.loads(path.read_text())
        assert data[0]["timestamp"] == "2026-10-18T08:00:00+00:00"
        assert data[0]["problematic_pods"][0]["severity"] == "Critical"

    def test_append_adds_empty_entry(self, tmp_path: Path) -> None:
        store = HistoryStore(str(tmp_path / "history.json"))
        first = store.append([], _entry("2026-10-17T08:00:00+00:00", "a"))

        second = store.append(first, _entry("2026-10-18T08:00:00+00:00"))

        loaded = store.load()
        assert loaded == second
        assert len(loaded) == 2
        assert loaded[-1].problematic_pods == []

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "deep" / "nested" / "history.json"
        HistoryStore(str(path)).save([])
        assert path.exists()

    def test_save_failure_raises(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("block")
        store = HistoryStore(str(blocker / "history.json"))

        with pytest.raises(OSError):
            store.save([_entry("2026-10-18T08:00:00+00:00", "a")])

    def test_failed_write_keeps_previous_file_and_no_temp(self, tmp_path: Path) -> None:
        path = tmp_path / "history.json"
        store = HistoryStore(str(path))
        original = [_entry("2026-10-17T08:00:00+00:00", "a")]
        store.save(original)

        with patch("podtriage.storage.json.dump", side_effect=TypeError("boom")), pytest.raises(TypeError):
            store.save([*original, _entry("2026-10-18T08:00:00+00:00", "b")])

        assert store.load() == original
        assert [f for f in os.listdir(tmp_path) if f.endswith(".tmp")] == []


class TestAtomicWriteJson:
    def test_overwrites_existing(self, tmp_path: Path) -> None:
        path = tmp_path / "report.json"
        atomic_write_json(str(path), {"v": 1})
        atomic_write_json(str(path), {"v": 2})
        assert json.loads(path.read_text()) == {"v": 2}
