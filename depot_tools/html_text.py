"""Plain-text rendering of fetched HTML pages."""

from __future__ import annotations

import re
from typing import Optional

from bs4 import BeautifulSoup

__all__ = ["strip_html_to_text"]

BLOCK_TAGS = ["p", "div", "br", "li", "tr", "td", "th", "h1", "h2", "h3", "h4", "h5", "h6"]

_SPACE_BEFORE_NEWLINE = re.compile(r"\s+\n")
_SPACE_AFTER_NEWLINE = re.compile(r"\n[ \t]+")
_BLANK_RUNS = re.compile(r"\n{3,}")
_HSPACE_RUNS = re.compile(r"[ \t]{2,}")


def strip_html_to_text(html: Optional[str]) -> str:
    """Drop scripts and styles, break lines at block tags, collapse spacing."""
    soup = BeautifulSoup(html or "", "lxml")
    for node in soup(["script", "style", "noscript"]):
        node.decompose()
    for node in soup.find_all(BLOCK_TAGS):
        node.append("\n")

    text = soup.get_text(" ")
    text = _SPACE_BEFORE_NEWLINE.sub("\n", text)
    text = _SPACE_AFTER_NEWLINE.sub("\n", text)
    text = _BLANK_RUNS.sub("\n\n", text)
    text = _HSPACE_RUNS.sub(" ", text)
    return text.strip()
