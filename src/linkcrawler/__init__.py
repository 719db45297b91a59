"""linkcrawler core library.

Breadth-first crawler control core: a persistent Todo/Done/Trash frontier,
a round-synchronized worker pool, and link scoping/normalization. Runs
either as a link enumerator or as a page archiver.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
