from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable, Iterable

import requests

from .archive import ArchiveStore
from .content import extension_for_content_type, extract_links
from .frontier import ALL_PARTITIONS, Frontier, FrontierError, Partition
from .http_client import (
    DEFAULT_USER_AGENT,
    FetchResult,
    HttpClient,
    TransportError,
    build_session,
)
from .remote_frontier import RemoteFrontier
from .state import SessionStats
from .stats import StatsReporter, format_stats
from .urls import LinkFilter, canonicalize_url, encode_url

LOGGER = logging.getLogger(__name__)

# Attempts allowed after the first one before a URL is trashed.
MAX_RETRIES = 3
SESSION_REFRESH_ROUNDS = 100

TODO = Partition.TODO.value
DONE = Partition.DONE.value
TRASH = Partition.TRASH.value


@dataclass
class CrawlConfig:
    base_url: str
    frontier_address: str = "http://localhost:8050"
    verbose: bool = False
    exclude_keywords: tuple[str, ...] = ()
    include_keywords: tuple[str, ...] = ()
    max_workers: int = 100
    max_connections: int = 100
    stats_interval_s: float = 5
    # Read by the frontier service's own backup job, not by the crawler.
    backup_interval_s: float = 5
    timeout_s: float = 30
    user_agent: str = DEFAULT_USER_AGENT
    archive_dir: Path = Path("downloaded")
    username: str | None = None
    password: str | None = None


def _parse_tries(url: str, raw: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise FrontierError(f"Bad tries value {raw!r} for {url}") from None


class Crawler:
    def __init__(
        self,
        config: CrawlConfig,
        *,
        frontier: Frontier | None = None,
        session_factory: Callable[[], requests.Session] | None = None,
        emit: Callable[[str], None] = print,
    ) -> None:
        self.cfg = config
        self.frontier = frontier or RemoteFrontier(
            config.frontier_address,
            self.name,
            username=config.username,
            password=config.password,
            max_connections=config.max_workers,
        )
        self.link_filter = LinkFilter(
            config.base_url,
            exclude_keywords=tuple(config.exclude_keywords),
            include_keywords=tuple(config.include_keywords),
        )
        self.archive = ArchiveStore(config.archive_dir)
        self._session_factory = session_factory or partial(
            build_session,
            max_connections=config.max_connections,
            user_agent=config.user_agent,
        )
        self._emit = emit
        self._downloaded: set[str] = set()
        self._in_flight: frozenset[str] = frozenset()

        self.frontier.create_partitions(ALL_PARTITIONS)
        self.stats = SessionStats(
            todo=len(self.frontier.list_keys(TODO)),
            done=len(self.frontier.list_keys(DONE)),
            trash=len(self.frontier.list_keys(TRASH)),
        )

    @property
    def name(self) -> str:
        return encode_url(self.cfg.base_url)

    def get_links(self) -> list[str]:
        """Every known good URL: done first, then still to do."""
        return sorted(self.frontier.list_keys(DONE)) + sorted(
            self.frontier.list_keys(TODO)
        )

    def dump(self, path: Path | None = None) -> Path:
        links = self.get_links()
        out_path = path or Path(f"{self.name}.txt")
        out_path.write_text("\n".join(links), encoding="utf-8", newline="\n")
        self._emit(f"Wrote {len(links)} links to {out_path}")
        return out_path

    def crawl(self) -> dict:
        """Enumerate every in-scope page reachable from the base URL."""
        LOGGER.debug("Checking to see if database has %s", self.cfg.base_url)
        self._seed([self.cfg.base_url])
        return self._run(download=False)

    def download(self, urls: Iterable[str]) -> dict:
        """Fetch ``urls`` (and anything left in todo) into the archive."""
        self._downloaded = self.archive.existing_ids()
        self._seed(urls)
        return self._run(download=True)

    def close(self) -> None:
        self.frontier.close()

    def _seed(self, urls: Iterable[str]) -> int:
        # Same key form as discovered links.
        urls = list(dict.fromkeys(canonicalize_url(u) or u for u in urls))
        if not urls:
            return 0
        present = self.frontier.membership(ALL_PARTITIONS, urls)
        new = {url: "0" for url in urls if not present.get(url)}
        if new:
            LOGGER.debug("Posting %d seed URLs to todo", len(new))
            self.frontier.upsert(TODO, new)
            self.stats.add(todo=len(new))
        return len(new)

    def _new_http(self) -> HttpClient:
        return HttpClient(self._session_factory(), timeout_s=self.cfg.timeout_s)

    def _run(self, *, download: bool) -> dict:
        http = self._new_http()
        self.stats.restart()
        reporter = StatsReporter(
            self.stats, interval_s=self.cfg.stats_interval_s, emit=self._emit
        )
        reporter.start()

        rounds = 0
        try:
            with ThreadPoolExecutor(
                max_workers=self.cfg.max_workers, thread_name_prefix="linkcrawler"
            ) as pool:
                while True:
                    batch = self.frontier.pop_batch(TODO, self.cfg.max_workers)
                    if not batch:
                        break
                    rounds += 1
                    records = [
                        (url, _parse_tries(url, raw)) for url, raw in batch.items()
                    ]

                    self._in_flight = frozenset(batch)
                    futures = [
                        pool.submit(self._process_url, http, url, tries, download)
                        for url, tries in records
                    ]
                    wait(futures)
                    self._in_flight = frozenset()
                    for future in futures:
                        # Re-raises the first fatal error of the round.
                        future.result()

                    if rounds % SESSION_REFRESH_ROUNDS == 0:
                        LOGGER.info("Reloading the HTTP pool")
                        http.close()
                        http = self._new_http()
        finally:
            reporter.stop()
            http.close()

        self.stats.set_todo(0)
        snap = self.stats.snapshot()
        self._emit(format_stats(snap))
        return {
            "mode": "download" if download else "crawl",
            "rounds": rounds,
            "parsed": snap.parsed,
            "todo": snap.todo,
            "done": snap.done,
            "trash": snap.trash,
            "elapsed_s": snap.elapsed_s,
        }

    def _move(self, url: str, tries: int, partition: str) -> None:
        self.frontier.upsert(partition, {url: str(tries)})
        if partition == DONE:
            self.stats.add(done=1, todo=-1)
        else:
            self.stats.add(trash=1, todo=-1)

    def _process_url(
        self, http: HttpClient, url: str, tries: int, download: bool
    ) -> None:
        if download and encode_url(url) in self._downloaded:
            LOGGER.debug("Already downloaded %s", url)
            self._move(url, tries, DONE)
            return

        tries += 1
        try:
            res = http.get(url)
        except TransportError as e:
            # No retry budget for transport failures.
            LOGGER.debug("Problem with %s: %s", url, e)
            self._move(url, tries, TRASH)
            return

        if res.status_code != 200:
            if tries > MAX_RETRIES:
                LOGGER.debug("Too many tries, trashing %s", url)
                self._move(url, tries, TRASH)
            else:
                self.frontier.upsert(TODO, {url: str(tries)})
            return

        self.stats.add(parsed=1)
        if download:
            if not self._archive(url, res):
                self._move(url, tries, TRASH)
                return
        else:
            self._enqueue_links(url, res.body)

        self._move(url, tries, DONE)
        LOGGER.debug("Posted %s to done", url)

    def _archive(self, url: str, res: FetchResult) -> bool:
        extension = extension_for_content_type(res.content_type)
        if extension is None:
            LOGGER.warning(
                "Unknown content type %r for %s, trashing", res.content_type, url
            )
            return False
        path = self.archive.write(url, extension, res.body)
        LOGGER.debug("Saved %s to %s", url, path.name)
        return True

    def _enqueue_links(self, url: str, body: bytes) -> int:
        links = extract_links(body)
        LOGGER.info("Got %d links from %s", len(links), url)

        candidates: list[str] = []
        for link in links:
            accepted = self.link_filter.accept(link)
            if accepted is not None:
                candidates.append(accepted)
        candidates = [c for c in dict.fromkeys(candidates) if c not in self._in_flight]
        if not candidates:
            return 0

        present = self.frontier.membership(ALL_PARTITIONS, candidates)
        new = {link: "0" for link in candidates if not present.get(link)}
        LOGGER.debug("Posting %d more links todo", len(new))
        if new:
            self.frontier.upsert(TODO, new)
            self.stats.add(todo=len(new))
        return len(new)
