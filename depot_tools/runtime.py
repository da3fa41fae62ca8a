"""Runtime wiring for CLI and service entrypoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .cache import TTLCache
from .config import AppConfig, load_config
from .fetcher import Fetcher
from .logging import configure_logging
from .search import GoogleSearchClient
from .service import DepotService


@dataclass(slots=True)
class Runtime:
    config: AppConfig
    fetcher: Fetcher
    search_client: Optional[GoogleSearchClient]
    service: DepotService

    def close(self) -> None:
        self.fetcher.close()
        if self.search_client is not None:
            self.search_client.close()


def build_runtime(config: AppConfig | None = None) -> Runtime:
    cfg = config or load_config()
    configure_logging(cfg.log_level)

    fetcher = Fetcher(
        timeout=cfg.http_timeout,
        pdf_timeout=cfg.pdf_timeout,
        retries=cfg.http_retries,
        user_agent=cfg.http_user_agent,
        max_pdf_bytes=cfg.max_pdf_bytes,
        max_html_bytes=cfg.max_html_bytes,
    )

    search_client = None
    if cfg.search_enabled:
        search_client = GoogleSearchClient(
            api_key=cfg.google_api_key,
            cx=cfg.google_cx,
            timeout=cfg.http_timeout,
            user_agent=cfg.http_user_agent,
        )

    service = DepotService(cfg, fetcher, search_client, TTLCache(cfg.cache_ttl, cfg.cache_max_entries))

    return Runtime(
        config=cfg,
        fetcher=fetcher,
        search_client=search_client,
        service=service,
    )
