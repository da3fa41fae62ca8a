"""Configuration loader for the Depot Tools service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Optional


def _get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(key)
    if value is not None:
        value = value.strip()
        if value == "":
            return default
        return value
    return default


def _get_int(key: str, default: int) -> int:
    value = _get_env(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} must be an integer") from exc


def _get_float(key: str, default: float) -> float:
    value = _get_env(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} must be a number") from exc


class AmbiguityPolicy(str, Enum):
    """How a value close to both gear sides is assigned.

    SPECULATIVE keeps the best candidate for each side even when the other
    side's anchors are at least as close, flagging the pick as ambiguous.
    STRICT only accepts candidates that are closer to the side being resolved.
    """

    SPECULATIVE = "speculative"
    STRICT = "strict"


@dataclass(frozen=True, slots=True)
class ReconstructionSettings:
    """Geometry thresholds used when rebuilding lines from glyph fragments."""

    line_tolerance: float = 2.0
    gap_threshold: float = 2.5
    estimated_char_width: float = 3.0


@dataclass(frozen=True, slots=True)
class ProximitySettings:
    """Scoring constants for anchor-proximity field extraction."""

    label_boost: int = 250
    label_window: int = 140
    max_anchor_hits: int = 20
    no_anchor_distance: int = 999_999
    ambiguity_policy: AmbiguityPolicy = AmbiguityPolicy.SPECULATIVE


@dataclass(slots=True)
class AppConfig:
    google_api_key: Optional[str]
    google_cx: Optional[str]
    http_timeout: float
    pdf_timeout: float
    http_retries: int
    http_user_agent: str
    max_pdf_bytes: int
    max_html_bytes: int
    cache_ttl: timedelta
    log_level: str
    cache_max_entries: int = 256
    reconstruction: ReconstructionSettings = field(default_factory=ReconstructionSettings)
    proximity: ProximitySettings = field(default_factory=ProximitySettings)

    @property
    def search_enabled(self) -> bool:
        return bool(self.google_api_key and self.google_cx)


DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; Depot-Tools/2.1)"


def _get_policy(key: str, default: AmbiguityPolicy) -> AmbiguityPolicy:
    value = _get_env(key)
    if value is None:
        return default
    try:
        return AmbiguityPolicy(value.lower())
    except ValueError as exc:
        allowed = ", ".join(policy.value for policy in AmbiguityPolicy)
        raise ValueError(f"Environment variable {key} must be one of: {allowed}") from exc


def load_config() -> AppConfig:
    google_api_key = _get_env("GOOGLE_API_KEY")
    google_cx = _get_env("GOOGLE_CX")

    http_timeout = _get_float("HTTP_TIMEOUT_SECONDS", 12.0)
    pdf_timeout = _get_float("PDF_TIMEOUT_SECONDS", 25.0)
    http_retries = max(1, _get_int("HTTP_RETRIES", 2))
    http_user_agent = _get_env("HTTP_USER_AGENT", DEFAULT_USER_AGENT)
    max_pdf_bytes = max(1, _get_int("MAX_PDF_BYTES", 22 * 1024 * 1024))
    max_html_bytes = max(1, _get_int("MAX_HTML_BYTES", 2 * 1024 * 1024))
    cache_ttl_seconds = max(0, _get_int("CACHE_TTL_SECONDS", 15 * 60))
    cache_max_entries = max(1, _get_int("CACHE_MAX_ENTRIES", 256))
    log_level = _get_env("LOG_LEVEL", "INFO").upper()

    reconstruction = ReconstructionSettings(
        line_tolerance=_get_float("LINE_TOLERANCE", 2.0),
        gap_threshold=_get_float("GAP_THRESHOLD", 2.5),
        estimated_char_width=_get_float("ESTIMATED_CHAR_WIDTH", 3.0),
    )
    proximity = ProximitySettings(
        label_boost=_get_int("LABEL_BOOST", 250),
        label_window=max(0, _get_int("LABEL_WINDOW", 140)),
        max_anchor_hits=max(1, _get_int("MAX_ANCHOR_HITS", 20)),
        ambiguity_policy=_get_policy("AMBIGUITY_POLICY", AmbiguityPolicy.SPECULATIVE),
    )

    return AppConfig(
        google_api_key=google_api_key,
        google_cx=google_cx,
        http_timeout=http_timeout,
        pdf_timeout=pdf_timeout,
        http_retries=http_retries,
        http_user_agent=http_user_agent,
        max_pdf_bytes=max_pdf_bytes,
        max_html_bytes=max_html_bytes,
        cache_ttl=timedelta(seconds=cache_ttl_seconds),
        log_level=log_level,
        cache_max_entries=cache_max_entries,
        reconstruction=reconstruction,
        proximity=proximity,
    )
