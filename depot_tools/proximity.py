"""Pick wheel and tire part numbers for each landing-gear side from noisy text.

Scraped snippets mention many part numbers; the one belonging to a side is the
one whose label is nearby and which sits closest to that side's anchor words
("NLG", "NOSE GEAR", ...). Scoring is ``label_boost - distance`` so a labeled
value a few hundred characters away still beats an unlabeled one next door.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import AmbiguityPolicy, ProximitySettings
from .logging import get_logger
from .models import (
    AnchorHit,
    CandidateSide,
    FieldPick,
    SideFields,
    ValueCandidate,
    WheelCard,
)
from .patterns import PATTERNS, ValueKind, ValuePattern

__all__ = [
    "NOSE_ANCHORS",
    "MAIN_ANCHORS",
    "SIDE_FIELDS",
    "normalize_corpus",
    "find_anchor_hits",
    "collect_candidates",
    "pick_labeled_value",
    "pick_nearest_value",
    "resolve_side",
    "extract_wheel_card",
]

logger = get_logger(__name__)

DEFAULT_SETTINGS = ProximitySettings()

NOSE_ANCHORS: Tuple[str, ...] = ("NLG", "NOSE", "NOSE GEAR", "NOSE WHEEL", "BURUN")
MAIN_ANCHORS: Tuple[str, ...] = ("MLG", "MAIN", "MAIN GEAR", "MAIN WHEEL", "ANA")

# Per side field: the labeled value kind, then the kind picked by distance alone
# when no labeled value exists.
SIDE_FIELDS: Tuple[Tuple[str, ValueKind, Optional[ValueKind]], ...] = (
    ("rim", ValueKind.RIM_PN, None),
    ("tire", ValueKind.TIRE_PN, ValueKind.TIRE_SIZE),
)

_LABEL_VARIANTS = [
    (re.compile(r"WHEEL\s*P\s*/?\s*N\b", re.IGNORECASE), "WHEEL P/N"),
    (re.compile(r"TIRE\s*P\s*/?\s*N\b", re.IGNORECASE), "TIRE P/N"),
    (re.compile(r"TYRE\s*P\s*/?\s*N\b", re.IGNORECASE), "TIRE P/N"),
]
_HSPACE = re.compile(r"[ \t]+")
_BLANK_RUNS = re.compile(r"\n{3,}")


def normalize_corpus(text: Optional[str]) -> str:
    s = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    s = _HSPACE.sub(" ", s)
    s = _BLANK_RUNS.sub("\n\n", s)
    for pattern, label in _LABEL_VARIANTS:
        s = pattern.sub(label, s)
    return s.upper()


def find_anchor_hits(
    text: str,
    anchors: Iterable[str],
    limit: int = DEFAULT_SETTINGS.max_anchor_hits,
) -> List[AnchorHit]:
    """Return whole-word anchor occurrences sorted by offset, at most ``limit``."""
    hits: List[AnchorHit] = []
    for anchor in anchors:
        term = anchor.upper()
        pattern = re.compile(rf"(?<![A-Z0-9]){re.escape(term)}(?![A-Z0-9])")
        hits.extend(AnchorHit(anchor_term=term, text_offset=m.start()) for m in pattern.finditer(text))
    hits.sort(key=lambda hit: (hit.text_offset, hit.anchor_term))
    return hits[:limit]


def collect_candidates(text: str, pattern: ValuePattern) -> List[ValueCandidate]:
    return [
        ValueCandidate(value=value, text_offset=offset)
        for offset, value in pattern.iter_values(text)
    ]


def _min_distance(offset: int, hits: Sequence[AnchorHit], default: int) -> int:
    if not hits:
        return default
    return min(abs(offset - hit.text_offset) for hit in hits)


def _has_label(text: str, offset: int, labels: Sequence[str], window: int) -> bool:
    region = text[max(0, offset - window): min(len(text), offset + window)]
    return any(label in region for label in labels)


def _tag_side(
    candidate: ValueCandidate,
    own: Sequence[AnchorHit],
    other: Sequence[AnchorHit],
    settings: ProximitySettings,
) -> ValueCandidate:
    own_distance = _min_distance(candidate.text_offset, own, settings.no_anchor_distance)
    other_distance = _min_distance(candidate.text_offset, other, settings.no_anchor_distance)
    side = CandidateSide.KNOWN_SIDE if own_distance < other_distance else CandidateSide.UNKNOWN
    return ValueCandidate(value=candidate.value, text_offset=candidate.text_offset, side=side)


def _select(
    scored: List[Tuple[float, ValueCandidate]],
    settings: ProximitySettings,
) -> FieldPick:
    if settings.ambiguity_policy is AmbiguityPolicy.STRICT:
        scored = [item for item in scored if item[1].side is CandidateSide.KNOWN_SIDE]
    if not scored:
        return FieldPick()

    # max() keeps the first of equal scores, so ties go to the earliest match.
    score, best = max(scored, key=lambda item: item[0])
    return FieldPick(
        value=best.value,
        candidate=best,
        score=score,
        ambiguous=best.side is CandidateSide.UNKNOWN,
    )


def pick_labeled_value(
    text: str,
    own: Sequence[AnchorHit],
    other: Sequence[AnchorHit],
    pattern: ValuePattern,
    settings: ProximitySettings = DEFAULT_SETTINGS,
) -> FieldPick:
    """Score every ``pattern`` match by label presence and anchor distance."""
    scored: List[Tuple[float, ValueCandidate]] = []
    for candidate in collect_candidates(text, pattern):
        boost = (
            settings.label_boost
            if _has_label(text, candidate.text_offset, pattern.labels, settings.label_window)
            else 0
        )
        distance = _min_distance(candidate.text_offset, own, settings.no_anchor_distance)
        scored.append((boost - distance, _tag_side(candidate, own, other, settings)))
    return _select(scored, settings)


def pick_nearest_value(
    text: str,
    own: Sequence[AnchorHit],
    other: Sequence[AnchorHit],
    pattern: ValuePattern,
    settings: ProximitySettings = DEFAULT_SETTINGS,
) -> FieldPick:
    """Pick the ``pattern`` match closest to the side's anchors, label or not."""
    scored = [
        (
            -_min_distance(candidate.text_offset, own, settings.no_anchor_distance),
            _tag_side(candidate, own, other, settings),
        )
        for candidate in collect_candidates(text, pattern)
    ]
    return _select(scored, settings)


def resolve_side(
    text: str,
    own: Sequence[AnchorHit],
    other: Sequence[AnchorHit],
    settings: ProximitySettings = DEFAULT_SETTINGS,
    fields: Sequence[Tuple[str, ValueKind, Optional[ValueKind]]] = SIDE_FIELDS,
) -> SideFields:
    picks = {}
    for name, labeled, fallback in fields:
        pick = pick_labeled_value(text, own, other, PATTERNS[labeled], settings)
        if not pick.found and fallback is not None:
            pick = pick_nearest_value(text, own, other, PATTERNS[fallback], settings)
        picks[name] = pick
    return SideFields(**picks)


def extract_wheel_card(
    raw: Optional[str],
    settings: ProximitySettings = DEFAULT_SETTINGS,
    nose_anchors: Sequence[str] = NOSE_ANCHORS,
    main_anchors: Sequence[str] = MAIN_ANCHORS,
) -> WheelCard:
    """Resolve nose- and main-gear wheel/tire values from a text corpus."""
    text = normalize_corpus(raw)
    nose_hits = find_anchor_hits(text, nose_anchors, settings.max_anchor_hits)
    main_hits = find_anchor_hits(text, main_anchors, settings.max_anchor_hits)

    card = WheelCard(
        nose=resolve_side(text, nose_hits, main_hits, settings),
        main=resolve_side(text, main_hits, nose_hits, settings),
    )
    ambiguous = [
        name
        for name, side in (("nose", card.nose), ("main", card.main))
        if side.rim.ambiguous or side.tire.ambiguous
    ]
    logger.info(
        "wheel_card_extracted",
        nose_anchors=len(nose_hits),
        main_anchors=len(main_hits),
        nose_rim=card.nose.rim.value,
        nose_tire=card.nose.tire.value,
        main_rim=card.main.rim.value,
        main_tire=card.main.tire.value,
        ambiguous_sides=ambiguous,
    )
    return card
