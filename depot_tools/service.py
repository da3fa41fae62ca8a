"""Orchestration of fetching, searching and extraction behind the API and CLI."""

from __future__ import annotations

from typing import List, Optional

from .aircraft import detect_aircraft_info, detect_operator_info
from .cache import TTLCache
from .cleaner import finalize_for_display
from .config import AppConfig
from .fetcher import FetchError, Fetcher, InvalidPdfError, assert_safe_url, resolve_pdf_url
from .html_text import strip_html_to_text
from .logging import get_logger
from .models import SdsSections
from .patterns import extract_mil_prf_codes
from .pdf_text import extract_document_text
from .proximity import extract_wheel_card
from .search import (
    GoogleSearchClient,
    SearchNotConfiguredError,
    dedupe_by_link,
    mil_prf_query,
    safe_host,
    sds_pdf_query,
    to_search_item,
    wheel_queries,
)
from .sections import locate_sds_sections

logger = get_logger(__name__)

MAX_SEARCH_ITEMS = 10
MAX_MIL_CODES = 10
MIL_PAGE_LINKS = 2
MIL_PAGE_STOP_AFTER = 6
WHEEL_RESULTS_PER_QUERY = 8
WHEEL_MAX_RESULTS = 10
WHEEL_FETCHED_PAGES = 4
WHEEL_SOURCES = 6


class DepotService:
    def __init__(
        self,
        config: AppConfig,
        fetcher: Fetcher,
        search_client: Optional[GoogleSearchClient],
        cache: TTLCache,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.search_client = search_client
        self.cache = cache

    def _require_search(self) -> GoogleSearchClient:
        if self.search_client is None:
            raise SearchNotConfiguredError("Search is not configured: set GOOGLE_API_KEY and GOOGLE_CX")
        return self.search_client

    # -- SDS sections -------------------------------------------------------

    def extract_sections(self, pdf_url: str) -> SdsSections:
        safe_url = assert_safe_url(pdf_url)
        cache_key = ("sections", safe_url)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info("sections_cache_hit", url=safe_url)
            return cached

        download_url = resolve_pdf_url(safe_url)
        if download_url != safe_url:
            logger.info("pdf_url_resolved", url=safe_url, download_url=download_url)
        pdf_bytes = self.fetcher.fetch_pdf(download_url)

        result = self.extract_sections_from_bytes(pdf_bytes)
        self.cache.set(cache_key, result)
        logger.debug("sections_cached", url=safe_url, entries=len(self.cache))
        return result

    def extract_sections_from_bytes(self, pdf_bytes: bytes) -> SdsSections:
        try:
            text, pages = extract_document_text(pdf_bytes, self.config.reconstruction)
        except Exception as exc:
            logger.error("pdf_parse_failed", error=str(exc))
            raise InvalidPdfError(
                "Invalid PDF structure: the link may serve a viewer page or a damaged file"
            ) from exc
        section7, section14 = locate_sds_sections(text)
        logger.info(
            "sections_located",
            pages=pages,
            section7=section7.method.value,
            section14=section14.method.value,
        )
        return SdsSections(
            section7=finalize_for_display(section7.cleaned_text),
            section14=finalize_for_display(section14.cleaned_text),
            pages=pages,
            details=(section7, section14),
        )

    # -- PDF and MIL-PRF search ---------------------------------------------

    def search(self, query: str) -> dict:
        client = self._require_search()
        query = (query or "").strip()

        raw_items = client.search(sds_pdf_query(query), num=10, pdf_only=True)
        items = [to_search_item(raw) for raw in raw_items if raw.get("link")]
        # sorted() is stable, so the API's ranking survives within each group.
        items = sorted(items, key=lambda item: not item.direct_pdf)[:MAX_SEARCH_ITEMS]

        mil_results = client.search(mil_prf_query(query), num=5, pdf_only=False)
        codes = self._mil_codes_from_results(mil_results)
        if not codes:
            links = [raw.get("link") for raw in mil_results if raw.get("link")]
            codes = self._mil_codes_from_pages(links[:MIL_PAGE_LINKS])

        logger.info("search_completed", query=query, items=len(items), mil_prf=len(codes))
        return {
            "items": [item.as_dict() for item in items],
            "milPrf": codes[:MAX_MIL_CODES],
        }

    @staticmethod
    def _mil_codes_from_results(results: List[dict]) -> List[str]:
        found: dict[str, None] = {}
        for raw in results:
            text = f"{raw.get('title') or ''} {raw.get('snippet') or ''}"
            for code in extract_mil_prf_codes(text):
                found.setdefault(code, None)
        return list(found)

    def _mil_codes_from_pages(self, links: List[str]) -> List[str]:
        found: dict[str, None] = {}
        for link in links:
            try:
                html = self.fetcher.fetch_html(assert_safe_url(link))
            except (ValueError, FetchError) as exc:
                logger.warning("mil_page_skipped", url=link, error=str(exc))
                continue
            for code in extract_mil_prf_codes(html):
                found.setdefault(code, None)
            if len(found) >= MIL_PAGE_STOP_AFTER:
                break
        return list(found)

    # -- Wheel and tire lookup ----------------------------------------------

    def lookup_wheels(self, tail: str) -> dict:
        client = self._require_search()
        tail = (tail or "").strip()

        results: List[dict] = []
        for query in wheel_queries(tail):
            results.extend(client.search(query, num=WHEEL_RESULTS_PER_QUERY))
        merged = dedupe_by_link(results)[:WHEEL_MAX_RESULTS]

        corpus_parts = [f"{raw.get('title') or ''}\n{raw.get('snippet') or ''}" for raw in merged]
        for raw in merged[:WHEEL_FETCHED_PAGES]:
            link = raw["link"]
            try:
                html = self.fetcher.fetch_html(assert_safe_url(link))
            except (ValueError, FetchError) as exc:
                logger.warning("wheel_page_skipped", url=link, error=str(exc))
                continue
            corpus_parts.append(strip_html_to_text(html))

        corpus = "\n\n".join(corpus_parts)
        card = extract_wheel_card(corpus, self.config.proximity)
        aircraft = detect_aircraft_info(corpus)
        operator = detect_operator_info(corpus)

        logger.info("wheels_looked_up", tail=tail, results=len(merged), corpus_chars=len(corpus))
        return {
            "tail": tail,
            "aircraft": aircraft.as_dict(),
            "operator": operator.as_dict(),
            **card.as_dict(),
            "sources": [
                {
                    "title": raw.get("title") or "",
                    "link": raw.get("link") or "",
                    "host": raw.get("displayLink") or safe_host(raw.get("link") or ""),
                }
                for raw in merged[:WHEEL_SOURCES]
            ],
        }
