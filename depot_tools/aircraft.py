"""Best-effort aircraft model and operator detection from scraped text."""

from __future__ import annotations

import re
from typing import Optional

from .models import AircraftInfo, OperatorInfo

__all__ = ["detect_aircraft_info", "detect_operator_info", "normalize_model"]

MODEL_PATTERNS = [
    re.compile(r"\bBoeing\s+7\d{2}(?:-\d{3})?\b", re.IGNORECASE),
    re.compile(r"\bAirbus\s+A\d{3}(?:-\d{3})?\b", re.IGNORECASE),
    re.compile(r"\bA\d{3}(?:-\d{3})?\b", re.IGNORECASE),
    re.compile(r"\bB\d{3}(?:-\d{3})?\b", re.IGNORECASE),
]
TYPE_CODE_PATTERNS = [
    re.compile(r"\b737NG\b", re.IGNORECASE),
    re.compile(r"\bA330\b", re.IGNORECASE),
    re.compile(r"\bA320\b", re.IGNORECASE),
    re.compile(r"\bA321\b", re.IGNORECASE),
]

# Checked in order; the first phrase found names the operator.
OPERATORS = [
    (("TURKISH AIRLINES", "TÜRK HAVA YOLLARI", "THY"), "Turkish Airlines"),
    (("PEGASUS",), "Pegasus"),
    (("SUNEXPRESS",), "SunExpress"),
]
COUNTRIES = [
    (("TURKEY", "TÜRKIYE", "TURKIYE"), "Turkey"),
]


def normalize_model(raw: str) -> str:
    value = (raw or "").strip()
    if re.match(r"^A\d{3}", value, re.IGNORECASE):
        return "Airbus " + value.upper()
    if re.match(r"^B\d{3}", value, re.IGNORECASE):
        return value.upper()
    value = re.sub(r"\s+", " ", value)
    return value[:1].upper() + value[1:]


def _first_match(patterns, text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(0)
    return None


def detect_aircraft_info(corpus: Optional[str]) -> AircraftInfo:
    text = corpus or ""

    raw_model = _first_match(MODEL_PATTERNS, text)
    model = normalize_model(raw_model) if raw_model else None

    raw_type = _first_match(TYPE_CODE_PATTERNS, text)
    type_code = raw_type.upper() if raw_type else None

    upper = text.upper()
    body_type = None
    if "WIDE BODY" in upper or "WIDEBODY" in upper:
        body_type = "WIDE BODY"
    elif "NARROW BODY" in upper or "NARROWBODY" in upper:
        body_type = "NARROW BODY"

    family = None
    if model:
        model_upper = model.upper()
        if model_upper.startswith("BOEING"):
            family = "BOEING"
        elif model_upper.startswith("AIRBUS"):
            family = "AIRBUS"

    return AircraftInfo(model=model, family=family, type_code=type_code, body_type=body_type)


def detect_operator_info(corpus: Optional[str]) -> OperatorInfo:
    upper = (corpus or "").upper()

    name = next(
        (label for phrases, label in OPERATORS if any(p in upper for p in phrases)),
        None,
    )
    country = next(
        (label for phrases, label in COUNTRIES if any(p in upper for p in phrases)),
        None,
    )
    return OperatorInfo(name=name, country=country)
