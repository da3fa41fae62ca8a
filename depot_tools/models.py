"""Domain models for glyph data, SDS sections and wheel part-number lookups."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

NOT_FOUND = "not found"


@dataclass(frozen=True, slots=True)
class GlyphFragment:
    """Positioned text run as emitted by a PDF text layer.

    ``y`` is the baseline in PDF user space, so larger values sit higher on
    the page. ``width`` is the rendered advance when the text layer knows it.
    """

    text: str
    x: float
    y: float
    width: Optional[float] = None


@dataclass(frozen=True, slots=True)
class Heading:
    """Numbered section heading detected in document text."""

    section_number: int
    text_offset: int
    title_text: str


class LocateMethod(str, Enum):
    HEADING = "heading"
    KEYWORD = "keyword"
    TRANSPORT_CODE = "transport_code"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class ExtractedSection:
    """Slice of document text belonging to one numbered section."""

    section_number: int
    start_offset: int
    end_offset: int
    cleaned_text: str
    method: LocateMethod

    @property
    def found(self) -> bool:
        return self.method is not LocateMethod.NOT_FOUND


@dataclass(frozen=True, slots=True)
class SdsSections:
    """Display-ready Section 7 and Section 14 text of one safety data sheet."""

    section7: str
    section14: str
    pages: int = 0
    details: tuple[ExtractedSection, ...] = ()

    def as_dict(self) -> dict:
        return {
            "section7": self.section7,
            "section14": self.section14,
            "pages": self.pages,
        }


@dataclass(frozen=True, slots=True)
class AnchorHit:
    anchor_term: str
    text_offset: int


class CandidateSide(str, Enum):
    KNOWN_SIDE = "known-side"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class ValueCandidate:
    """Regex match competing to be the value of one field."""

    value: str
    text_offset: int
    side: CandidateSide = CandidateSide.UNKNOWN


@dataclass(frozen=True, slots=True)
class FieldPick:
    """Selected value for one field kind on one side."""

    value: str = NOT_FOUND
    candidate: Optional[ValueCandidate] = None
    score: Optional[float] = None
    ambiguous: bool = False

    @property
    def found(self) -> bool:
        return self.candidate is not None


@dataclass(frozen=True, slots=True)
class SideFields:
    rim: FieldPick = field(default_factory=FieldPick)
    tire: FieldPick = field(default_factory=FieldPick)

    def as_dict(self) -> dict:
        return {"wheelPn": self.rim.value, "tirePn": self.tire.value}


@dataclass(frozen=True, slots=True)
class WheelCard:
    """Wheel and tire part numbers for the nose and main landing gear."""

    nose: SideFields = field(default_factory=SideFields)
    main: SideFields = field(default_factory=SideFields)

    def as_dict(self) -> dict:
        return {"nlg": self.nose.as_dict(), "mlg": self.main.as_dict()}


@dataclass(frozen=True, slots=True)
class AircraftInfo:
    model: Optional[str] = None
    family: Optional[str] = None
    type_code: Optional[str] = None
    body_type: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "model": self.model,
            "family": self.family,
            "typeCode": self.type_code,
            "bodyType": self.body_type,
        }


@dataclass(frozen=True, slots=True)
class OperatorInfo:
    name: Optional[str] = None
    country: Optional[str] = None

    def as_dict(self) -> dict:
        return {"name": self.name, "country": self.country}


@dataclass(slots=True)
class SearchItem:
    """Single web search result."""

    title: str
    link: str
    snippet: str = ""
    host: str = ""
    mime: str = ""
    direct_pdf: bool = False

    def as_dict(self) -> dict:
        return {
            "title": self.title,
            "link": self.link,
            "snippet": self.snippet,
            "host": self.host,
            "mime": self.mime,
            "directPdf": self.direct_pdf,
        }
