from __future__ import annotations

import time
from dataclasses import dataclass

import requests
from requests import exceptions as req_exc
from requests.adapters import HTTPAdapter

DEFAULT_USER_AGENT = "linkcrawler/0.1"


class TransportError(RuntimeError):
    """The request never produced an HTTP response (DNS, connect, timeout)."""


@dataclass(frozen=True)
class FetchResult:
    url: str
    final_url: str
    status_code: int
    headers: dict[str, str]
    fetched_at: float
    body: bytes

    @property
    def content_type(self) -> str | None:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return None


def build_session(
    *,
    max_connections: int = 100,
    user_agent: str = DEFAULT_USER_AGENT,
) -> requests.Session:
    """Session whose connection pool holds up to ``max_connections`` per host."""
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=max_connections,
        pool_maxsize=max_connections,
        max_retries=0,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers["User-Agent"] = user_agent
    # Archived bodies are compressed by us, not by the server.
    session.headers["Accept-Encoding"] = "identity"
    return session


class HttpClient:
    """One attempt per call. Retry policy belongs to the frontier, not here."""

    def __init__(
        self,
        session: requests.Session,
        *,
        timeout_s: float = 30,
    ) -> None:
        self._session = session
        self._timeout_s = timeout_s

    def get(self, url: str) -> FetchResult:
        try:
            resp = self._session.get(url, timeout=self._timeout_s)
            body = resp.content
        except req_exc.RequestException as e:
            raise TransportError(f"Failed to fetch {url}: {e}") from e

        return FetchResult(
            url=url,
            final_url=str(resp.url),
            status_code=int(resp.status_code),
            headers={k: str(v) for k, v in resp.headers.items()},
            fetched_at=time.time(),
            body=body,
        )

    def close(self) -> None:
        self._session.close()
