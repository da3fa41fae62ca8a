"""Repair of words that a PDF text layer emitted as spaced single letters."""

from __future__ import annotations

from typing import List

__all__ = ["collapse_letter_runs", "MIN_LETTER_RUN"]

# Shorter runs are usually initials, "a" or "I".
MIN_LETTER_RUN = 4


def _is_single_letter(token: str) -> bool:
    return len(token) == 1 and token.isalpha()


def collapse_letter_runs(line: str, min_run: int = MIN_LETTER_RUN) -> str:
    """Merge runs of ``min_run`` or more single-letter tokens into one word.

    >>> collapse_letter_runs("7 H A N D L I N G and storage")
    '7 HANDLING and storage'
    >>> collapse_letter_runs("A B testing")
    'A B testing'
    """
    tokens = (line or "").split()
    out: List[str] = []
    i = 0
    while i < len(tokens):
        if not _is_single_letter(tokens[i]):
            out.append(tokens[i])
            i += 1
            continue

        j = i
        while j < len(tokens) and _is_single_letter(tokens[j]):
            j += 1
        run = tokens[i:j]
        if len(run) >= min_run:
            out.append("".join(run))
        else:
            out.extend(run)
        i = j

    return " ".join(out)
