"""Persistent crawl frontier.

The frontier is a key-value store split into three partitions. Each key is a
URL and each value is the number of fetch attempts made so far, as a string.
A URL lives in at most one partition at a time.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable


class Partition(str, Enum):
    TODO = "todo"
    DONE = "done"
    TRASH = "trash"


ALL_PARTITIONS: tuple[str, ...] = tuple(p.value for p in Partition)


def partition_name(partition: str) -> str:
    if isinstance(partition, Partition):
        return partition.value
    return str(partition)


class FrontierError(RuntimeError):
    """A frontier call failed. Always fatal for the running crawl."""


class Frontier(ABC):
    @abstractmethod
    def create_partitions(self, names: Iterable[str]) -> None:
        """Ensure the partitions exist. Idempotent."""

    @abstractmethod
    def list_keys(self, partition: str) -> set[str]:
        ...

    @abstractmethod
    def membership(
        self, partitions: Iterable[str], keys: Iterable[str]
    ) -> dict[str, bool]:
        """For each key, whether it exists in any of ``partitions``."""

    @abstractmethod
    def upsert(self, partition: str, items: dict[str, str]) -> None:
        ...

    @abstractmethod
    def pop_batch(self, partition: str, max_count: int) -> dict[str, str]:
        """Atomically remove and return up to ``max_count`` entries."""

    def close(self) -> None:
        return None


class MemoryFrontier(Frontier):
    """In-process frontier. Every call runs under one lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._partitions: dict[str, dict[str, str]] = {}

    def _get(self, partition: str) -> dict[str, str]:
        try:
            return self._partitions[partition_name(partition)]
        except KeyError:
            name = partition_name(partition)
            raise FrontierError(f"Unknown partition: {name}") from None

    def create_partitions(self, names: Iterable[str]) -> None:
        with self._lock:
            for name in names:
                self._partitions.setdefault(partition_name(name), {})

    def list_keys(self, partition: str) -> set[str]:
        with self._lock:
            return set(self._get(partition))

    def membership(
        self, partitions: Iterable[str], keys: Iterable[str]
    ) -> dict[str, bool]:
        with self._lock:
            stores = [self._get(p) for p in partitions]
            return {key: any(key in s for s in stores) for key in keys}

    def upsert(self, partition: str, items: dict[str, str]) -> None:
        with self._lock:
            self._get(partition).update(items)

    def pop_batch(self, partition: str, max_count: int) -> dict[str, str]:
        with self._lock:
            store = self._get(partition)
            # dicts keep insertion order, so batches come out FIFO.
            keys = list(store)[: max(0, max_count)]
            return {key: store.pop(key) for key in keys}

    def snapshot(self) -> dict[str, dict[str, str]]:
        with self._lock:
            return {name: dict(items) for name, items in self._partitions.items()}
