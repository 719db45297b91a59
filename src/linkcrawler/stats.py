from __future__ import annotations

import math
import threading
from typing import Callable

from .state import SessionStats, StatsSnapshot

FINISHED_MESSAGE = "Finished"


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    if abs(value) < 0.5:
        return 0
    return int(value + math.copysign(0.5, value))


def format_stats(snap: StatsSnapshot) -> str:
    rate = round_half_away(snap.parsed / snap.elapsed_s) if snap.elapsed_s > 0 else 0
    return (
        f"{snap.parsed:,} parsed ({rate}/s), {snap.todo:,} todo, "
        f"{snap.done:,} done, {snap.trash:,} trashed"
    )


class StatsReporter(threading.Thread):
    """Emits a stats line every ``interval_s`` until the todo count hits zero."""

    def __init__(
        self,
        stats: SessionStats,
        *,
        interval_s: float = 5,
        emit: Callable[[str], None] = print,
    ) -> None:
        super().__init__(name="linkcrawler-stats", daemon=True)
        self._stats = stats
        self._interval_s = interval_s
        self._emit = emit
        self._stop_event = threading.Event()

    def run(self) -> None:
        while not self._stop_event.wait(self._interval_s):
            snap = self._stats.snapshot()
            if snap.todo == 0:
                self._emit(FINISHED_MESSAGE)
                return
            self._emit(format_stats(snap))

    def stop(self) -> None:
        self._stop_event.set()
