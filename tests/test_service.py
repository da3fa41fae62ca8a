from datetime import timedelta

import pytest

from depot_tools.cache import TTLCache
from depot_tools.config import AppConfig
from depot_tools.fetcher import FetchError, InvalidPdfError, UnsafeUrlError
from depot_tools.models import NOT_FOUND
from depot_tools.search import SearchNotConfiguredError, sds_pdf_query
from depot_tools.service import DepotService

SDS_TEXT = (
    "7. Handling and storage\nKeep container tightly closed.\nStore below 25°C\n"
    "8. Exposure controls\nWear gloves.\n"
)


class FakeFetcher:
    def __init__(self, pages=None):
        self.pages = pages or {}
        self.pdf_calls = []
        self.html_calls = []

    def fetch_pdf(self, url):
        self.pdf_calls.append(url)
        return b"%PDF-1.4 fake"

    def fetch_html(self, url):
        self.html_calls.append(url)
        if url not in self.pages:
            raise FetchError("Download failed (HTTP 404)")
        return self.pages[url]

    def close(self):
        pass


class FakeSearchClient:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def search(self, query, num=5, pdf_only=False):
        self.calls.append((query, num, pdf_only))
        return self.responses.pop(0)

    def close(self):
        pass


def make_config():
    return AppConfig(
        google_api_key="key",
        google_cx="cx",
        http_timeout=1.0,
        pdf_timeout=1.0,
        http_retries=1,
        http_user_agent="test-agent",
        max_pdf_bytes=1024,
        max_html_bytes=1024,
        cache_ttl=timedelta(minutes=15),
        log_level="INFO",
    )


def make_service(fetcher=None, search_client=None):
    config = make_config()
    return DepotService(config, fetcher or FakeFetcher(), search_client, TTLCache(config.cache_ttl))


def test_extract_sections_resolves_drive_links_and_caches(monkeypatch):
    monkeypatch.setattr(
        "depot_tools.service.extract_document_text",
        lambda pdf_bytes, settings: (SDS_TEXT, 2),
    )
    fetcher = FakeFetcher()
    service = make_service(fetcher)

    first = service.extract_sections("https://drive.google.com/file/d/abc/view")
    second = service.extract_sections("https://drive.google.com/file/d/abc/view")

    assert first is second
    assert fetcher.pdf_calls == ["https://drive.google.com/uc?export=download&id=abc"]
    assert first.pages == 2
    assert "Store below 25°C" in first.section7
    assert "Wear gloves" not in first.section7
    assert first.section14.startswith("Transport information (Section 14) not found")


def test_extract_sections_rejects_unsafe_urls():
    fetcher = FakeFetcher()
    with pytest.raises(UnsafeUrlError):
        make_service(fetcher).extract_sections("http://localhost/sds.pdf")
    assert fetcher.pdf_calls == []


def test_extract_sections_from_bytes_reports_parse_failures(monkeypatch):
    def broken(pdf_bytes, settings):
        raise RuntimeError("No /Root object")

    monkeypatch.setattr("depot_tools.service.extract_document_text", broken)
    with pytest.raises(InvalidPdfError):
        make_service().extract_sections_from_bytes(b"%PDF-broken")


def test_search_puts_direct_pdfs_first_and_reads_mil_codes_from_snippets():
    client = FakeSearchClient(
        [
            [
                {"title": "Viewer", "link": "https://x.example/view?id=1"},
                {"title": "No link"},
                {"title": "Direct", "link": "https://x.example/a.pdf"},
            ],
            [{"title": "Spec", "snippet": "Conforms to mil-prf-81733D type II"}],
        ]
    )
    result = make_service(search_client=client).search("  acetone ")

    assert [item["title"] for item in result["items"]] == ["Direct", "Viewer"]
    assert result["items"][0]["directPdf"] is True
    assert result["milPrf"] == ["MIL-PRF-81733D"]
    assert client.calls[0] == (sds_pdf_query("acetone"), 10, True)


def test_search_scans_first_two_pages_when_snippets_have_no_codes():
    client = FakeSearchClient(
        [
            [],
            [
                {"link": "https://a.example/p1"},
                {"link": "http://127.0.0.1/p2"},
                {"link": "https://b.example/p3"},
            ],
        ]
    )
    fetcher = FakeFetcher({"https://a.example/p1": "<p>Use MIL-PRF-23699 oil</p>"})

    result = make_service(fetcher, client).search("turbine oil")

    assert result == {"items": [], "milPrf": ["MIL-PRF-23699"]}
    assert fetcher.html_calls == ["https://a.example/p1"]


def test_search_requires_configuration():
    with pytest.raises(SearchNotConfiguredError):
        make_service().search("acetone")


def test_lookup_wheels_builds_card_from_snippets_and_pages():
    client = FakeSearchClient(
        [
            [{"title": "TC-JHK wheels", "link": "https://a.example/1", "snippet": "NLG WHEEL P/N 123456-7"}],
            [
                {"title": "duplicate", "link": "https://a.example/1"},
                {"title": "Gear data", "link": "https://b.example/2", "displayLink": "b.example"},
            ],
            [],
        ]
    )
    fetcher = FakeFetcher(
        {"https://b.example/2": "<p>MLG WHEEL P/N 654321-1</p><p>Boeing 737-800 operated by Pegasus</p>"}
    )

    result = make_service(fetcher, client).lookup_wheels(" TC-JHK ")

    assert result["tail"] == "TC-JHK"
    assert result["nlg"] == {"wheelPn": "123456-7", "tirePn": NOT_FOUND}
    assert result["mlg"] == {"wheelPn": "654321-1", "tirePn": NOT_FOUND}
    assert result["aircraft"]["model"] == "Boeing 737-800"
    assert result["operator"]["name"] == "Pegasus"
    assert result["sources"] == [
        {"title": "TC-JHK wheels", "link": "https://a.example/1", "host": "a.example"},
        {"title": "Gear data", "link": "https://b.example/2", "host": "b.example"},
    ]
    assert [call[1] for call in client.calls] == [8, 8, 8]
    assert fetcher.html_calls == ["https://a.example/1", "https://b.example/2"]
