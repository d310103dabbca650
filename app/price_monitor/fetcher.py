"""
HTTP page fetcher for monitored product pages.
"""

from __future__ import annotations

import requests

from app.price_monitor.errors import NetworkError


class PageFetcher:
    """
    Fetches one product page with a single unauthenticated GET.

    There is no retry here: a failed target is picked up again by the next
    cycle because its status becomes ERROR.
    """

    def __init__(
        self,
        *,
        session: requests.Session,
        timeout_seconds: float,
        user_agent: str,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._session = session
        self._timeout_seconds = timeout_seconds
        self._headers = {"User-Agent": user_agent, **(headers or {})}

    def fetch(self, url: str) -> str:
        try:
            response = self._session.get(
                url,
                headers=self._headers,
                timeout=self._timeout_seconds,
                allow_redirects=True,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            raise NetworkError(f"GET {url} returned status={status_code}") from exc
        except requests.RequestException as exc:
            raise NetworkError(f"GET {url} failed: {exc}") from exc
        return response.text
