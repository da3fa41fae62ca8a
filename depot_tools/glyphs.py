"""Rebuild reading-order text lines from positioned PDF glyph fragments.

A page arrives as an unordered bag of fragments (text + baseline x/y + width).
Fragments whose baselines lie within ``line_tolerance`` of each other form one
line; lines are emitted top of page first and fragments left to right, with a
space inserted only where the horizontal gap says two runs are separate words.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Mapping, Optional, Sequence

from .config import ReconstructionSettings
from .letters import collapse_letter_runs
from .models import GlyphFragment

__all__ = [
    "reconstruct_lines",
    "page_text",
    "assemble_document_text",
]

DEFAULT_SETTINGS = ReconstructionSettings()

_CLOSING_PUNCT = re.compile(r"^[,.;:)\]]")
_OPENING_TAIL = re.compile(r"[(\[/]\s*$")


def _fragment_end(fragment: GlyphFragment, settings: ReconstructionSettings) -> float:
    if fragment.width is not None:
        return fragment.x + fragment.width
    return fragment.x + len(fragment.text) * settings.estimated_char_width


def _bucket_fragments(
    fragments: Sequence[GlyphFragment],
    tolerance: float,
) -> tuple[List[float], List[List[GlyphFragment]]]:
    """Assign each fragment to a y-bucket.

    Buckets live in two parallel lists indexed by the order they were first
    seen: ``keys[i]`` is the baseline that opened bucket ``i`` and
    ``members[i]`` the fragments assigned to it. ``fragments`` must arrive
    with non-increasing ``y``, so the earliest bucket still within
    ``tolerance`` only ever moves forward.
    """
    keys: List[float] = []
    members: List[List[GlyphFragment]] = []
    first = 0

    for fragment in fragments:
        while first < len(keys) and keys[first] - fragment.y > tolerance:
            first += 1
        if first == len(keys):
            keys.append(fragment.y)
            members.append([])
        members[first].append(fragment)

    return keys, members


def _join_line(items: Sequence[GlyphFragment], settings: ReconstructionSettings) -> str:
    line = ""
    last_end: Optional[float] = None

    for item in items:
        token = item.text
        if not line:
            line = token
            last_end = _fragment_end(item, settings)
            continue

        gap = item.x - last_end if last_end is not None else 0.0
        needs_space = (
            gap > settings.gap_threshold
            and not _CLOSING_PUNCT.match(token)
            and not _OPENING_TAIL.search(line)
        )
        line += (" " if needs_space else "") + token
        last_end = _fragment_end(item, settings)

    return line


def reconstruct_lines(
    fragments: Iterable[GlyphFragment],
    settings: ReconstructionSettings = DEFAULT_SETTINGS,
) -> List[str]:
    """Return the page's lines, top to bottom, without letter-run repair."""
    usable = [f for f in fragments if f is not None and f.text and f.text.strip()]
    # Canonical order keeps bucket keys independent of the caller's ordering.
    usable.sort(key=lambda f: (-f.y, f.x, f.text))

    keys, members = _bucket_fragments(usable, settings.line_tolerance)

    order = sorted(range(len(keys)), key=lambda idx: keys[idx], reverse=True)
    lines: List[str] = []
    for idx in order:
        items = sorted(members[idx], key=lambda f: (f.x, f.text))
        lines.append(_join_line(items, settings))
    return lines


def page_text(
    fragments: Iterable[GlyphFragment],
    settings: ReconstructionSettings = DEFAULT_SETTINGS,
) -> str:
    """Reconstruct one page as newline-separated text."""
    lines = [
        collapse_letter_runs(line).rstrip()
        for line in reconstruct_lines(fragments, settings)
    ]
    return "\n".join(lines).strip()


def assemble_document_text(page_texts: Mapping[int, str]) -> str:
    """Join page texts keyed by page number, whatever order they finished in."""
    return "".join((page_texts[number] or "") + "\n" for number in sorted(page_texts))
