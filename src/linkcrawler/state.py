from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class StatsSnapshot:
    parsed: int
    todo: int
    done: int
    trash: int
    elapsed_s: float


@dataclass
class SessionStats:
    """Process-lifetime counters for progress reporting.

    Approximate by nature; the frontier is the source of truth.
    """

    todo: int = 0
    done: int = 0
    trash: int = 0
    parsed: int = 0
    started_at: float = field(default_factory=time.monotonic)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def restart(self) -> None:
        with self._lock:
            self.parsed = 0
            self.started_at = time.monotonic()

    def add(
        self, *, todo: int = 0, done: int = 0, trash: int = 0, parsed: int = 0
    ) -> None:
        with self._lock:
            self.todo += todo
            self.done += done
            self.trash += trash
            self.parsed += parsed

    def set_todo(self, value: int) -> None:
        with self._lock:
            self.todo = value

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(
                parsed=self.parsed,
                todo=self.todo,
                done=self.done,
                trash=self.trash,
                elapsed_s=time.monotonic() - self.started_at,
            )
