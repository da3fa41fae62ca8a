import httpx
import pytest

from depot_tools.search import (
    GoogleSearchClient,
    SearchError,
    dedupe_by_link,
    is_likely_direct_pdf_link,
    is_mil_query,
    sds_pdf_query,
    to_search_item,
    wheel_queries,
)


def make_client(handler):
    return GoogleSearchClient(
        api_key="key-1",
        cx="cx-1",
        timeout=5.0,
        user_agent="test-agent",
        transport=httpx.MockTransport(handler),
    )


def test_search_sends_clamped_query_parameters():
    captured = {}

    def handler(request):
        captured.update(request.url.params)
        return httpx.Response(200, json={"items": [{"title": "SDS", "link": "https://a/x.pdf"}]})

    client = make_client(handler)
    items = client.search("acetone", num=50, pdf_only=True)

    assert items == [{"title": "SDS", "link": "https://a/x.pdf"}]
    assert captured["key"] == "key-1"
    assert captured["cx"] == "cx-1"
    assert captured["q"] == "acetone"
    assert captured["num"] == "10"
    assert captured["safe"] == "off"
    assert captured["fileType"] == "pdf"
    client.close()


def test_search_without_pdf_filter_and_empty_results():
    captured = {}

    def handler(request):
        captured.update(request.url.params)
        return httpx.Response(200, json={})

    assert make_client(handler).search("x", num=0) == []
    assert "fileType" not in captured
    assert captured["num"] == "5"


def test_search_raises_with_api_error_message():
    client = make_client(
        lambda request: httpx.Response(403, json={"error": {"message": "Daily limit exceeded"}})
    )
    with pytest.raises(SearchError, match="Daily limit exceeded"):
        client.search("acetone")


def test_search_raises_on_non_json_error():
    client = make_client(lambda request: httpx.Response(500, text="oops"))
    with pytest.raises(SearchError, match="500"):
        client.search("acetone")


def test_is_likely_direct_pdf_link():
    assert is_likely_direct_pdf_link("https://x.com/a.PDF")
    assert is_likely_direct_pdf_link("https://x.com/a.pdf?dl=1")
    assert is_likely_direct_pdf_link("https://drive.google.com/uc?export=download&id=1")
    assert is_likely_direct_pdf_link("https://x.com/doc", "application/pdf")
    assert not is_likely_direct_pdf_link("https://x.com/viewer?file=a")
    assert not is_likely_direct_pdf_link(None)


def test_dedupe_by_link_keeps_first_occurrence():
    items = [
        {"link": "a", "title": "first"},
        {"link": ""},
        {"link": "b"},
        {"link": "a", "title": "second"},
    ]
    assert dedupe_by_link(items) == [{"link": "a", "title": "first"}, {"link": "b"}]


def test_query_builders():
    assert is_mil_query("mil prf 81733")
    assert not is_mil_query("acetone")
    assert sds_pdf_query("MIL-PRF-81733") == "MIL-PRF-81733 filetype:pdf"
    assert sds_pdf_query("acetone") == 'acetone (MSDS OR SDS OR "Safety Data Sheet") filetype:pdf'
    assert all(query.startswith("TC-JHK ") for query in wheel_queries("TC-JHK"))
    assert len(wheel_queries("TC-JHK")) == 3


def test_to_search_item_falls_back_to_link_host():
    item = to_search_item({"title": "SDS", "link": "https://docs.example.com/a.pdf"})
    assert item.host == "docs.example.com"
    assert item.direct_pdf
    assert item.as_dict()["directPdf"] is True
