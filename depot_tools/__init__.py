"""Core package for the Depot Tools SDS section and wheel part-number extractor."""

__all__ = [
    "config",
    "models",
    "glyphs",
    "letters",
    "sections",
    "cleaner",
    "patterns",
    "proximity",
    "aircraft",
    "pdf_text",
    "html_text",
    "fetcher",
    "search",
    "cache",
    "service",
    "runtime",
    "app",
    "cli",
]
