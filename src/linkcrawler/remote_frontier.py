"""Frontier backed by a remote key-value service speaking JSON over HTTP.

Routes, relative to ``{address}/v1/db/{database}``:

- ``POST /create`` with ``{"buckets": [...]}``
- ``GET /bucket/{name}/keys`` -> ``{"keys": [...]}``
- ``POST /has`` with ``{"buckets": [...], "keys": [...]}`` -> ``{"data": {key: bool}}``
- ``POST /bucket/{name}/update`` with ``{key: value}``
- ``DELETE /bucket/{name}/pop?n=N`` -> ``{"data": {key: value}}``
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

import requests
from requests import exceptions as req_exc
from requests.adapters import HTTPAdapter

from .frontier import Frontier, FrontierError, partition_name

LOGGER = logging.getLogger(__name__)


class RemoteFrontier(Frontier):
    def __init__(
        self,
        address: str,
        database: str,
        *,
        username: str | None = None,
        password: str | None = None,
        timeout_s: float = 60,
        max_connections: int = 10,
        session: requests.Session | None = None,
    ) -> None:
        if session is None:
            # Every crawl worker may hold a frontier connection at once.
            session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=max_connections, pool_maxsize=max_connections
            )
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self._session = session
        if username:
            self._session.auth = (username, password or "")
        self._timeout_s = timeout_s
        self._base = f"{address.rstrip('/')}/v1/db/{database}"
        LOGGER.info("Using frontier database %s on %s", database, address)

    def _call(
        self,
        method: str,
        path: str,
        *,
        payload: Any = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = self._base + path
        try:
            resp = self._session.request(
                method, url, json=payload, params=params, timeout=self._timeout_s
            )
        except req_exc.RequestException as e:
            raise FrontierError(f"{method} {url} failed: {e}") from e

        if resp.status_code >= 400:
            raise FrontierError(
                f"{method} {url} returned {resp.status_code}: {resp.text[:200]}"
            )
        if not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError as e:
            raise FrontierError(f"{method} {url} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise FrontierError(f"{method} {url} returned unexpected payload")
        return data

    def create_partitions(self, names: Iterable[str]) -> None:
        buckets = [partition_name(n) for n in names]
        self._call("POST", "/create", payload={"buckets": buckets})

    def list_keys(self, partition: str) -> set[str]:
        data = self._call("GET", f"/bucket/{partition_name(partition)}/keys")
        return {str(k) for k in data.get("keys") or []}

    def membership(
        self, partitions: Iterable[str], keys: Iterable[str]
    ) -> dict[str, bool]:
        keys = list(keys)
        if not keys:
            return {}
        data = self._call(
            "POST",
            "/has",
            payload={"buckets": [partition_name(p) for p in partitions], "keys": keys},
        )
        found = data.get("data") or {}
        return {key: bool(found.get(key, False)) for key in keys}

    def upsert(self, partition: str, items: dict[str, str]) -> None:
        if not items:
            return
        self._call(
            "POST",
            f"/bucket/{partition_name(partition)}/update",
            payload={str(k): str(v) for k, v in items.items()},
        )

    def pop_batch(self, partition: str, max_count: int) -> dict[str, str]:
        data = self._call(
            "DELETE",
            f"/bucket/{partition_name(partition)}/pop",
            params={"n": int(max_count)},
        )
        popped = data.get("data") or {}
        return {str(k): str(v) for k, v in popped.items()}

    def close(self) -> None:
        self._session.close()
