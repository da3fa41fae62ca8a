"""Google Custom Search client and result helpers."""

from __future__ import annotations

import threading
from typing import Iterable, List, Optional
from urllib.parse import urlsplit

import httpx

from .logging import get_logger
from .models import SearchItem

__all__ = [
    "SearchError",
    "SearchNotConfiguredError",
    "GoogleSearchClient",
    "dedupe_by_link",
    "is_likely_direct_pdf_link",
    "is_mil_query",
    "safe_host",
    "sds_pdf_query",
    "mil_prf_query",
    "wheel_queries",
    "to_search_item",
]

logger = get_logger(__name__)

CSE_ENDPOINT = "https://www.googleapis.com/customsearch/v1"

_WHEEL_LABELS = '("wheel p/n" OR "wheel pn" OR "rim p/n" OR "tire p/n" OR "tyre")'


class SearchError(RuntimeError):
    """Search API call failed."""


class SearchNotConfiguredError(SearchError):
    """No API key or engine id is configured."""


def is_mil_query(query: str) -> bool:
    upper = (query or "").upper()
    return "MIL-PRF" in upper or "MIL PRF" in upper or "MILPRF" in upper


def sds_pdf_query(query: str) -> str:
    if is_mil_query(query):
        return f"{query} filetype:pdf"
    return f'{query} (MSDS OR SDS OR "Safety Data Sheet") filetype:pdf'


def mil_prf_query(query: str) -> str:
    return f'{query} ("MIL-PRF" OR "MIL PRF" OR MILPRF)'


def wheel_queries(tail: str) -> List[str]:
    return [
        f'{tail} (NLG OR "nose gear" OR "nose wheel" OR burun) {_WHEEL_LABELS}',
        f'{tail} (MLG OR "main gear" OR "main wheel" OR ana) {_WHEEL_LABELS}',
        f'{tail} wheel tire "wheel p/n" "tire p/n"',
    ]


def safe_host(link: str) -> str:
    try:
        return urlsplit(link or "").hostname or ""
    except ValueError:
        return ""


def is_likely_direct_pdf_link(link: Optional[str], mime: Optional[str] = None) -> bool:
    lowered = (link or "").lower()
    if "pdf" in (mime or "").lower():
        return True
    if lowered.endswith(".pdf") or ".pdf?" in lowered:
        return True
    return "/uc?" in lowered and "export=download" in lowered


def dedupe_by_link(items: Iterable[dict]) -> List[dict]:
    """Keep the first raw result per link; results without a link are dropped."""
    seen: dict[str, dict] = {}
    for item in items:
        link = (item or {}).get("link") or ""
        if link and link not in seen:
            seen[link] = item
    return list(seen.values())


def to_search_item(raw: dict) -> SearchItem:
    link = raw.get("link") or ""
    mime = raw.get("mime") or ""
    return SearchItem(
        title=raw.get("title") or "",
        link=link,
        snippet=raw.get("snippet") or "",
        host=raw.get("displayLink") or safe_host(link),
        mime=mime,
        direct_pdf=is_likely_direct_pdf_link(link, mime),
    )


class GoogleSearchClient:
    def __init__(
        self,
        api_key: str,
        cx: str,
        timeout: float,
        user_agent: str,
        endpoint: str = CSE_ENDPOINT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.cx = cx
        self.endpoint = endpoint
        self._client = httpx.Client(
            timeout=timeout,
            headers={"User-Agent": user_agent},
            transport=transport,
        )
        self._lock = threading.Lock()

    def close(self) -> None:
        with self._lock:
            self._client.close()

    def search(self, query: str, num: int = 5, pdf_only: bool = False) -> List[dict]:
        """Return the raw ``items`` list of one Custom Search call."""
        params = {
            "key": self.api_key,
            "cx": self.cx,
            "q": query,
            "num": str(min(max(num or 5, 1), 10)),
            "safe": "off",
        }
        if pdf_only:
            params["fileType"] = "pdf"

        try:
            with self._lock:
                response = self._client.get(self.endpoint, params=params)
        except httpx.HTTPError as exc:
            raise SearchError(f"Search request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if response.is_error:
            message = (payload.get("error") or {}).get("message")
            raise SearchError(message or f"Google API error: {response.status_code}")

        items = payload.get("items") or []
        logger.debug("search_completed", query=query, results=len(items))
        return items
