"""Fixed-grammar extractors for specification codes, part numbers and tire sizes."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

__all__ = [
    "ValueKind",
    "ValuePattern",
    "SPEC_CODE",
    "RIM_PN",
    "TIRE_PN",
    "TIRE_SIZE",
    "PART_NUMBER",
    "PATTERNS",
    "is_plausible_value",
    "extract_mil_prf_codes",
    "extract_part_numbers",
    "extract_tire_sizes",
]

_YEAR_PATTERN = re.compile(r"(?:19|20)\d{2}")
_DIGIT_PATTERN = re.compile(r"\d")
_WHITESPACE = re.compile(r"\s+")


class ValueKind(str, Enum):
    SPEC_CODE = "spec_code"
    RIM_PN = "rim_pn"
    TIRE_PN = "tire_pn"
    TIRE_SIZE = "tire_size"
    PART_NUMBER = "part_number"


def is_plausible_value(value: str, min_length: int = 5) -> bool:
    """Reject year-like tokens, values without digits and short fragments."""
    if not value or len(value) < min_length:
        return False
    if _YEAR_PATTERN.fullmatch(value):
        return False
    return bool(_DIGIT_PATTERN.search(value))


def _compact(value: str) -> str:
    return _WHITESPACE.sub("", value)


def _canonical_mil_prf(body: str) -> str:
    return re.sub(r"--+", "-", f"MIL-PRF-{body}")


@dataclass(frozen=True, slots=True)
class ValuePattern:
    """One member of the closed set of value shapes.

    ``group`` is the capture group holding the value (0 for the whole match)
    and ``labels`` the phrases that, when found near a match, confirm it.
    """

    kind: ValueKind
    regex: re.Pattern[str]
    group: int = 0
    min_length: int = 5
    labels: Tuple[str, ...] = ()
    normalize: Callable[[str], str] = str.strip
    accept: Callable[[str, int], bool] = is_plausible_value

    def iter_values(self, text: str):
        """Yield ``(offset, value)`` for every accepted match in ``text``."""
        for match in self.regex.finditer(text or ""):
            raw = match.group(self.group) or ""
            value = self.normalize(raw)
            if not value or not self.accept(value, self.min_length):
                continue
            yield match.start(), value


SPEC_CODE = ValuePattern(
    kind=ValueKind.SPEC_CODE,
    regex=re.compile(r"\bMIL\s*[- ]?\s*PRF\s*[- ]?\s*([0-9]{3,6}[A-Z0-9/-]{0,12})\b", re.IGNORECASE),
    group=1,
    min_length=3,
    normalize=lambda raw: _canonical_mil_prf(raw.strip().upper()),
    accept=lambda value, min_length: len(value) >= min_length,
)

RIM_PN = ValuePattern(
    kind=ValueKind.RIM_PN,
    regex=re.compile(
        r"(?:WHEEL|RIM)\s*(?:P/?N|PN|PART\s*NUMBER)\s*[:#]?\s*([A-Z0-9][A-Z0-9-]{4,})",
        re.IGNORECASE,
    ),
    group=1,
    labels=(
        "WHEEL P/N",
        "WHEEL PN",
        "WHEEL P N",
        "RIM P/N",
        "RIM PN",
        "WHEEL PART NUMBER",
        "RIM PART NUMBER",
    ),
)

TIRE_PN = ValuePattern(
    kind=ValueKind.TIRE_PN,
    regex=re.compile(
        r"(?:TIRE|TYRE)\s*(?:P/?N|PN|PART\s*NUMBER)\s*[:#]?\s*([A-Z0-9][A-Z0-9-]{4,})",
        re.IGNORECASE,
    ),
    group=1,
    labels=(
        "TIRE P/N",
        "TIRE PN",
        "TYRE P/N",
        "TYRE PN",
        "TIRE PART NUMBER",
        "TYRE PART NUMBER",
        "TIRE SIZE",
        "TYRE SIZE",
    ),
)

# H40x14.5-19, 1050x395R16, 46x16-20
TIRE_SIZE = ValuePattern(
    kind=ValueKind.TIRE_SIZE,
    regex=re.compile(
        r"\bH?\d{2,4}(?:\.\d{1,2})?\s*[xX]\s*\d{2,4}(?:\.\d{1,2})?\s*(?:R\s*)?-?\s*\d{2}\b",
    ),
    min_length=5,
    labels=TIRE_PN.labels,
    normalize=lambda raw: _compact(raw).upper(),
)

_DATE_LIKE = re.compile(r"(?:19|20)\d{2}-\d{1,2}")

# 12345-6, 123-456-7, ABC12345-6
PART_NUMBER = ValuePattern(
    kind=ValueKind.PART_NUMBER,
    regex=re.compile(
        r"\b(?:[A-Z]{1,4}\d{4,8}-\d{1,3}|\d{3}-\d{3}-\d{1,3}|\d{4,8}-\d{1,3})\b",
        re.IGNORECASE,
    ),
    min_length=5,
    normalize=lambda raw: raw.strip().upper(),
    accept=lambda value, min_length: (
        is_plausible_value(value, min_length) and not _DATE_LIKE.fullmatch(value)
    ),
)

PATTERNS: dict[ValueKind, ValuePattern] = {
    pattern.kind: pattern
    for pattern in (SPEC_CODE, RIM_PN, TIRE_PN, TIRE_SIZE, PART_NUMBER)
}


def _unique_values(pattern: ValuePattern, text: Optional[str]) -> List[str]:
    seen: set[str] = set()
    ordered: List[str] = []
    for _, value in pattern.iter_values(text or ""):
        if value in seen:
            continue
        seen.add(value)
        ordered.append(value)
    return ordered


def extract_mil_prf_codes(text: Optional[str]) -> List[str]:
    """Return canonical ``MIL-PRF-<number>`` codes in first-seen order."""
    return _unique_values(SPEC_CODE, (text or "").upper())


def extract_part_numbers(text: Optional[str]) -> List[str]:
    return _unique_values(PART_NUMBER, text)


def extract_tire_sizes(text: Optional[str]) -> List[str]:
    return _unique_values(TIRE_SIZE, text)
