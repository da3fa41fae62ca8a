"""PDF text layer: glyph fragments per page via pdfplumber."""

from __future__ import annotations

import io
from typing import Iterator, List

import pdfplumber

from .config import ReconstructionSettings
from .glyphs import assemble_document_text, page_text
from .logging import get_logger
from .models import GlyphFragment

__all__ = ["iter_page_fragments", "extract_document_text"]

logger = get_logger(__name__)


def _page_fragments(page) -> List[GlyphFragment]:
    height = float(page.height)
    words = page.extract_words(
        keep_blank_chars=True,
        use_text_flow=False,
        extra_attrs=[],
    )

    fragments: List[GlyphFragment] = []
    for w in words:
        text = w.get("text") or ""
        if not text.strip():
            continue
        x0 = float(w["x0"])
        x1 = float(w["x1"])
        # pdfplumber measures from the top; fragments use a bottom-up baseline.
        baseline = height - float(w["bottom"])
        fragments.append(GlyphFragment(text=text, x=x0, y=baseline, width=max(0.0, x1 - x0)))
    return fragments


def iter_page_fragments(pdf_bytes: bytes) -> Iterator[List[GlyphFragment]]:
    """Yield the glyph fragments of each page, first page first."""
    with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
        for page in pdf.pages:
            yield _page_fragments(page)


def extract_document_text(
    pdf_bytes: bytes,
    settings: ReconstructionSettings = ReconstructionSettings(),
) -> tuple[str, int]:
    """Return ``(document_text, page_count)`` for a PDF held in memory."""
    page_texts: dict[int, str] = {}
    for number, fragments in enumerate(iter_page_fragments(pdf_bytes), start=1):
        page_texts[number] = page_text(fragments, settings)
        logger.debug("page_reconstructed", page=number, fragments=len(fragments))

    logger.info("pdf_text_extracted", pages=len(page_texts))
    return assemble_document_text(page_texts), len(page_texts)
