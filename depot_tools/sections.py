"""Locate numbered SDS sections (Handling & Storage, Transport) in document text.

Headings are found with a single line-anchored regex and filtered by number
range and, for the two target sections, by title keywords. When no accepted
heading exists the section is cut out by phrase search instead, and when that
fails too a sentinel string is returned. Nothing here raises for string input.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .cleaner import clean_section
from .logging import get_logger
from .models import ExtractedSection, Heading, LocateMethod

__all__ = [
    "SectionTarget",
    "HANDLING_AND_STORAGE",
    "TRANSPORT_INFORMATION",
    "TITLE_EVIDENCE",
    "normalize_document_text",
    "find_headings",
    "locate_section",
    "locate_sds_sections",
]

logger = get_logger(__name__)

MIN_SECTION = 1
MAX_SECTION = 16
MAX_TITLE_CHARS = 220

HEADING_PATTERN = re.compile(
    r"(^|\n)\s*"
    r"(?:SECTION|CHAPTER|BÖLÜM|BOLUM|ABSCHNITT|RUBRIQUE|SECCIÓN|SECCION|SEZIONE)?"
    r"\s*(\d{1,2})(?!\d)\s*[:.)-]?\s*"
    rf"([^\n]{{0,{MAX_TITLE_CHARS}}})",
    re.IGNORECASE | re.MULTILINE,
)

# Numbered lists inside a section also start with "7." or "14.", so those two
# numbers only count as headings when the title says what the section is.
TITLE_EVIDENCE: Dict[int, re.Pattern[str]] = {
    7: re.compile(r"HANDLING|STORAGE", re.IGNORECASE),
    14: re.compile(
        r"TRANSPORT|TRANSPORTATION|SHIPPING|UN NUMBER|\bIATA\b|\bIMDG\b|\bADR\b",
        re.IGNORECASE,
    ),
}

_LETTER_SPACED = [
    (re.compile(r"S\s+E\s+C\s+T\s+I\s+O\s+N", re.IGNORECASE), "SECTION"),
    (re.compile(r"H\s+A\s+N\s+D\s+L\s+I\s+N\s+G", re.IGNORECASE), "Handling"),
    (re.compile(r"S\s+T\s+O\s+R\s+A\s+G\s+E", re.IGNORECASE), "Storage"),
    (re.compile(r"T\s+R\s+A\s+N\s+S\s+P\s+O\s+R\s+T", re.IGNORECASE), "Transport"),
    (re.compile(r"S\s+H\s+I\s+P\s+P\s+I\s+N\s+G", re.IGNORECASE), "Shipping"),
]
_HSPACE = re.compile(r"[ \t]+")
_BLANK_RUNS = re.compile(r"\n{3,}")

TRANSPORT_CODES = ("UN NUMBER", "ADR", "IMDG", "IATA", "ICAO")


@dataclass(frozen=True, slots=True)
class SectionTarget:
    """A section to cut out of an SDS and how to find it without headings."""

    number: int
    start_phrases: Tuple[str, ...]
    stop_phrases: Tuple[str, ...]
    not_found: str
    code_phrases: Tuple[str, ...] = ()

    @property
    def successor(self) -> int:
        return self.number + 1


HANDLING_AND_STORAGE = SectionTarget(
    number=7,
    start_phrases=("SECTION 7", "HANDLING AND STORAGE", "HANDLING & STORAGE"),
    stop_phrases=("SECTION 8", "EXPOSURE CONTROLS", "PERSONAL PROTECTION"),
    not_found=(
        "Handling and storage (Section 7) not found. "
        "(The document may be mostly images or tables.)"
    ),
)

TRANSPORT_INFORMATION = SectionTarget(
    number=14,
    start_phrases=(
        "SECTION 14",
        "TRANSPORT INFORMATION",
        "TRANSPORTATION INFORMATION",
        "SHIPPING INFORMATION",
    ),
    stop_phrases=("SECTION 15", "REGULATORY INFORMATION", "SECTION 16", "OTHER INFORMATION"),
    not_found=(
        "Transport information (Section 14) not found. "
        "(The document may be mostly images or tables.)"
    ),
    code_phrases=TRANSPORT_CODES,
)


def normalize_document_text(text: Optional[str]) -> str:
    t = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    t = _HSPACE.sub(" ", t)
    t = _BLANK_RUNS.sub("\n\n", t)
    for pattern, word in _LETTER_SPACED:
        t = pattern.sub(word, t)
    return t.strip()


def find_headings(
    text: str,
    evidence: Optional[Dict[int, re.Pattern[str]]] = None,
) -> List[Heading]:
    evidence = TITLE_EVIDENCE if evidence is None else evidence
    headings: List[Heading] = []

    for match in HEADING_PATTERN.finditer(text):
        number = int(match.group(2))
        if number < MIN_SECTION or number > MAX_SECTION:
            continue

        title = match.group(3).strip()
        required = evidence.get(number)
        if required is not None and not required.search(title):
            continue

        offset = match.start() + len(match.group(1))
        headings.append(Heading(section_number=number, text_offset=offset, title_text=title))

    headings.sort(key=lambda h: h.text_offset)
    return headings


def _phrase_pattern(phrases: Sequence[str]) -> re.Pattern[str]:
    return re.compile("|".join(re.escape(p) for p in phrases), re.IGNORECASE)


def _slice_by_heading(
    text: str,
    target: SectionTarget,
    headings: Sequence[Heading],
) -> Optional[Tuple[int, int]]:
    start = next((h for h in headings if h.section_number == target.number), None)
    if start is None:
        return None

    after = [h for h in headings if h.text_offset > start.text_offset]
    end = next((h for h in after if h.section_number == target.successor), None)
    if end is None and after:
        end = after[0]

    end_offset = end.text_offset if end else len(text)
    return start.text_offset, end_offset


def _slice_by_phrases(
    text: str,
    start_phrases: Sequence[str],
    stop_phrases: Sequence[str],
) -> Optional[Tuple[int, int]]:
    if not start_phrases:
        return None
    start = _phrase_pattern(start_phrases).search(text)
    if start is None:
        return None

    stop = _phrase_pattern(stop_phrases).search(text, start.start()) if stop_phrases else None
    end_offset = stop.start() if stop else len(text)
    return start.start(), end_offset


def locate_section(
    text: str,
    target: SectionTarget,
    headings: Optional[Sequence[Heading]] = None,
) -> ExtractedSection:
    """Cut ``target`` out of normalized document text.

    Tries heading boundaries first, then the start/stop phrase search, then
    (for targets that define them) hazard transport codes as start phrases.
    """
    text = text or ""
    if headings is None:
        headings = find_headings(text)

    attempts = (
        (LocateMethod.HEADING, lambda: _slice_by_heading(text, target, headings)),
        (
            LocateMethod.KEYWORD,
            lambda: _slice_by_phrases(text, target.start_phrases, target.stop_phrases),
        ),
        (
            LocateMethod.TRANSPORT_CODE,
            lambda: _slice_by_phrases(text, target.code_phrases, target.stop_phrases),
        ),
    )
    for method, attempt in attempts:
        bounds = attempt()
        if bounds is None:
            continue
        start, end = bounds
        logger.debug(
            "section_located",
            section=target.number,
            method=method.value,
            start=start,
            end=end,
        )
        return ExtractedSection(
            section_number=target.number,
            start_offset=start,
            end_offset=end,
            cleaned_text=clean_section(text[start:end]),
            method=method,
        )

    logger.info("section_not_found", section=target.number)
    return ExtractedSection(
        section_number=target.number,
        start_offset=0,
        end_offset=0,
        cleaned_text=target.not_found,
        method=LocateMethod.NOT_FOUND,
    )


def locate_sds_sections(raw_text: Optional[str]) -> Tuple[ExtractedSection, ExtractedSection]:
    """Return the Section 7 and Section 14 slices of a raw SDS document."""
    text = normalize_document_text(raw_text)
    headings = find_headings(text)
    return (
        locate_section(text, HANDLING_AND_STORAGE, headings),
        locate_section(text, TRANSPORT_INFORMATION, headings),
    )
