from __future__ import annotations

import gzip
from dataclasses import dataclass
from pathlib import Path

from .urls import encode_url


@dataclass
class ArchiveStore:
    archive_dir: Path

    def existing_ids(self) -> set[str]:
        """Identifiers of bodies already on disk.

        A point-in-time snapshot; files written afterwards are not added.
        """
        if not self.archive_dir.is_dir():
            return set()
        ids: set[str] = set()
        for path in self.archive_dir.iterdir():
            name = path.name.split(".", 1)[0]
            if len(name) < 2:
                continue
            ids.add(name)
        return ids

    def path_for(self, url: str, extension: str) -> Path:
        return self.archive_dir / f"{encode_url(url)}{extension}.gz"

    def write(self, url: str, extension: str, body: bytes) -> Path:
        self.archive_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(url, extension)
        path.write_bytes(gzip.compress(body))
        return path
