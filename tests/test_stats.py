"""Tests for linkcrawler.stats and linkcrawler.state."""

from __future__ import annotations

import threading

import pytest

from linkcrawler.state import SessionStats, StatsSnapshot
from linkcrawler.stats import (
    FINISHED_MESSAGE,
    StatsReporter,
    format_stats,
    round_half_away,
)


@pytest.mark.parametrize(
    "value,expected",
    [(0.0, 0), (0.49, 0), (0.5, 1), (1.4, 1), (2.5, 3), (-2.5, -3), (-0.4, 0)],
)
def test_round_half_away(value, expected):
    assert round_half_away(value) == expected


class TestFormatStats:
    def test_thousands_separators(self):
        snap = StatsSnapshot(
            parsed=1234567, todo=1000, done=25000, trash=3, elapsed_s=1000.0
        )
        assert format_stats(snap) == (
            "1,234,567 parsed (1235/s), 1,000 todo, 25,000 done, 3 trashed"
        )

    def test_zero_elapsed(self):
        snap = StatsSnapshot(parsed=5, todo=1, done=0, trash=0, elapsed_s=0.0)
        assert format_stats(snap).startswith("5 parsed (0/s)")


class TestSessionStats:
    def test_add_and_snapshot(self):
        stats = SessionStats(todo=2)
        stats.add(parsed=1, done=1, todo=-1)
        stats.add(trash=1, todo=-1)
        snap = stats.snapshot()
        assert (snap.parsed, snap.todo, snap.done, snap.trash) == (1, 0, 1, 1)

    def test_concurrent_increments_are_not_lost(self):
        stats = SessionStats()

        def bump():
            for _ in range(1000):
                stats.add(parsed=1)

        threads = [threading.Thread(target=bump) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert stats.snapshot().parsed == 8000

    def test_restart_resets_parsed_only(self):
        stats = SessionStats(done=4)
        stats.add(parsed=3)
        stats.restart()
        snap = stats.snapshot()
        assert snap.parsed == 0
        assert snap.done == 4


class TestStatsReporter:
    def test_prints_finished_and_stops_when_todo_empty(self):
        lines: list[str] = []
        reporter = StatsReporter(SessionStats(), interval_s=0.01, emit=lines.append)
        reporter.start()
        reporter.join(timeout=2)
        assert not reporter.is_alive()
        assert lines == [FINISHED_MESSAGE]

    def test_reports_until_stopped(self):
        lines: list[str] = []
        got_line = threading.Event()

        def emit(line):
            lines.append(line)
            got_line.set()

        reporter = StatsReporter(SessionStats(todo=3), interval_s=0.01, emit=emit)
        reporter.start()
        assert got_line.wait(timeout=2)
        reporter.stop()
        reporter.join(timeout=2)
        assert not reporter.is_alive()
        assert "3 todo" in lines[0]
        assert FINISHED_MESSAGE not in lines
