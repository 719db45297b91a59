from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .crawl import CrawlConfig, Crawler
from .frontier import FrontierError, MemoryFrontier
from .http_client import DEFAULT_USER_AGENT

MEMORY_FRONTIER = "memory"


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("base_url", help="Seed URL and scope anchor")
    p.add_argument(
        "--frontier",
        default="http://localhost:8050",
        help=f"Frontier service address, or '{MEMORY_FRONTIER}' for an in-process one",
    )
    p.add_argument("--username", default=None)
    p.add_argument("--password", default=None)
    p.add_argument("--verbose", action="store_true", help="Trace-level logging")


def _add_run_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="Repeatable; skip links containing this keyword",
    )
    p.add_argument(
        "--include",
        action="append",
        default=[],
        help="Repeatable; only follow links containing one of these keywords",
    )
    p.add_argument("--workers", type=int, default=100)
    p.add_argument("--connections", type=int, default=100)
    p.add_argument("--timeout", type=float, default=30.0)
    p.add_argument("--stats-interval", type=float, default=5.0)
    p.add_argument("--backup-interval", type=float, default=5.0)
    p.add_argument("--user-agent", default=DEFAULT_USER_AGENT)
    p.add_argument("--dump", action="store_true", help="Write the link list when done")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logging.getLogger("linkcrawler").setLevel(
        logging.DEBUG if verbose else logging.WARNING
    )


def _read_urls(path: Path) -> list[str]:
    return [
        line.strip()
        for line in path.read_text(encoding="utf-8").splitlines()
        if line.strip()
    ]


def _build_config(args: argparse.Namespace) -> CrawlConfig:
    cfg = CrawlConfig(
        base_url=args.base_url,
        frontier_address=args.frontier,
        verbose=bool(args.verbose),
        username=args.username,
        password=args.password,
    )
    if hasattr(args, "workers"):
        cfg.exclude_keywords = tuple(args.exclude)
        cfg.include_keywords = tuple(args.include)
        cfg.max_workers = int(args.workers)
        cfg.max_connections = int(args.connections)
        cfg.timeout_s = float(args.timeout)
        cfg.stats_interval_s = float(args.stats_interval)
        cfg.backup_interval_s = float(args.backup_interval)
        cfg.user_agent = args.user_agent
    if getattr(args, "archive_dir", None) is not None:
        cfg.archive_dir = args.archive_dir
    return cfg


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="linkcrawler")
    sub = parser.add_subparsers(dest="cmd", required=True)

    crawl_p = sub.add_parser("crawl", help="Enumerate pages reachable from a URL")
    _add_common_args(crawl_p)
    _add_run_args(crawl_p)

    download_p = sub.add_parser(
        "download", help="Download and archive pages into a gzip directory"
    )
    _add_common_args(download_p)
    _add_run_args(download_p)
    download_p.add_argument(
        "--url", action="append", default=[], help="Repeatable; URL to download"
    )
    download_p.add_argument(
        "--urls-file", type=Path, default=None, help="File with one URL per line"
    )
    download_p.add_argument("--archive-dir", type=Path, default=Path("downloaded"))

    dump_p = sub.add_parser("dump", help="Write every known good URL to a text file")
    _add_common_args(dump_p)
    dump_p.add_argument("--out", type=Path, default=None)

    args = parser.parse_args(argv)
    _configure_logging(bool(args.verbose))

    cfg = _build_config(args)
    try:
        frontier = MemoryFrontier() if args.frontier == MEMORY_FRONTIER else None
        crawler = Crawler(cfg, frontier=frontier)
        try:
            if args.cmd == "crawl":
                crawler.crawl()
                if args.dump:
                    crawler.dump()
            elif args.cmd == "download":
                urls = list(args.url)
                if args.urls_file is not None:
                    urls.extend(_read_urls(args.urls_file))
                crawler.download(urls)
                if args.dump:
                    crawler.dump()
            elif args.cmd == "dump":
                crawler.dump(args.out)
        finally:
            crawler.close()
    except (FrontierError, OSError) as e:
        print(str(e), file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
