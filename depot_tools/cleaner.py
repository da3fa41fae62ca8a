"""Header/footer removal and display clean-up for extracted SDS sections."""

from __future__ import annotations

import re
from collections import Counter
from typing import List, Optional

__all__ = [
    "looks_like_header_footer",
    "clean_section",
    "finalize_for_display",
]

_TRAILING_PAGE = re.compile(r"/\s*\d+\s*$")
_PAGE_OF = re.compile(r"\b\d+\s*/\s*\d+\b")
_MSDS = re.compile(r"M\s*S\s*D\s*S", re.IGNORECASE)
_SINGLE_LETTER = re.compile(r"^[A-Za-z]$")

_BLANK_RUNS = re.compile(r"\n{3,}")
_HSPACE = re.compile(r"[ \t]+")
_HYPHEN_BREAK = re.compile(r"([A-Za-z])-\n([A-Za-z])")
_SEPARATOR = re.compile(r"[ \t]*([:;,])[ \t]*")
_TRAILING_SPACE = re.compile(r"[ \t]+$", re.MULTILINE)

PAGE_MARKER_LETTER_RATIO = 0.45
MSDS_LETTER_RATIO = 0.55
REPEAT_MIN_COUNT = 3
REPEAT_MAX_LENGTH = 120


def looks_like_header_footer(line: str) -> bool:
    """Detect running headers/footers injected into the text flow.

    A line qualifies when it carries a page marker ("/ 3", "3 / 10") together
    with either an MSDS tag or mostly single-letter tokens, or when it carries
    an MSDS tag and is dominated by single-letter tokens.
    """
    tokens = line.split()
    if not tokens:
        return False

    has_page = bool(_TRAILING_PAGE.search(line) or _PAGE_OF.search(line))
    has_msds = bool(_MSDS.search(line))
    single_letters = sum(1 for token in tokens if _SINGLE_LETTER.match(token))
    ratio = single_letters / len(tokens)

    return (has_page and (has_msds or ratio > PAGE_MARKER_LETTER_RATIO)) or (
        has_msds and ratio > MSDS_LETTER_RATIO
    )


def clean_section(section: Optional[str]) -> str:
    lines = [line.rstrip() for line in (section or "").split("\n")]

    filtered: List[str] = []
    for line in lines:
        stripped = line.strip()
        if not stripped:
            filtered.append("")
            continue
        if looks_like_header_footer(stripped):
            continue
        filtered.append(line)

    counts = Counter(line.strip() for line in filtered if line.strip())
    kept = [
        line
        for line in filtered
        if not line.strip()
        or counts[line.strip()] < REPEAT_MIN_COUNT
        or len(line.strip()) >= REPEAT_MAX_LENGTH
    ]

    return _BLANK_RUNS.sub("\n\n", "\n".join(kept)).strip()


def _separator(match: re.Match[str]) -> str:
    source = match.string
    punct = match.group(1)
    before = source[match.start() - 1] if match.start() > 0 else ""
    after = source[match.end()] if match.end() < len(source) else ""
    # Thousands separators and clock times stay glued.
    if match.group(0) == punct and before.isdigit() and after.isdigit():
        return punct
    return punct + " "


def finalize_for_display(text: Optional[str]) -> str:
    s = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    s = _HSPACE.sub(" ", s)
    s = _HYPHEN_BREAK.sub(r"\1\2", s)
    s = _SEPARATOR.sub(_separator, s)
    s = _TRAILING_SPACE.sub("", s)
    s = _BLANK_RUNS.sub("\n\n", s)
    return s.strip()
