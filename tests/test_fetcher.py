import httpx
import pytest

from depot_tools.fetcher import (
    FetchError,
    Fetcher,
    InvalidPdfError,
    UnsafeUrlError,
    assert_safe_url,
    has_pdf_eof,
    resolve_pdf_url,
    starts_with_pdf_header,
)

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n%%EOF\n"


def make_fetcher(handler, **overrides):
    options = dict(
        timeout=5.0,
        pdf_timeout=5.0,
        retries=2,
        user_agent="test-agent",
        max_pdf_bytes=1024,
        max_html_bytes=1024,
        transport=httpx.MockTransport(handler),
    )
    options.update(overrides)
    return Fetcher(**options)


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr("depot_tools.fetcher.time.sleep", lambda seconds: None)


def test_assert_safe_url_accepts_public_http_urls():
    assert assert_safe_url(" https://example.com/sds.pdf ") == "https://example.com/sds.pdf"
    assert assert_safe_url("http://172.32.0.1/file.pdf") == "http://172.32.0.1/file.pdf"


@pytest.mark.parametrize(
    "url",
    [
        "ftp://example.com/file.pdf",
        "not a url",
        "http://localhost:8000/",
        "http://api.localhost/",
        "http://127.0.0.1/",
        "http://10.1.2.3/",
        "http://192.168.1.10/",
        "http://172.20.0.1/",
        "http://169.254.169.254/latest/meta-data",
    ],
)
def test_assert_safe_url_rejects_local_targets(url):
    with pytest.raises(UnsafeUrlError):
        assert_safe_url(url)


def test_resolve_pdf_url_rewrites_drive_viewer_links():
    viewer = "https://drive.google.com/file/d/1AbC_d-9/view?usp=sharing"
    assert resolve_pdf_url(viewer) == "https://drive.google.com/uc?export=download&id=1AbC_d-9"
    assert resolve_pdf_url("https://example.com/a.pdf") == "https://example.com/a.pdf"


def test_pdf_signature_checks():
    assert starts_with_pdf_header(b"\xef\xbb\xbf \n%PDF-1.7")
    assert not starts_with_pdf_header(b"<!DOCTYPE html>")
    assert has_pdf_eof(b"x" * 20000 + b"%%EOF")
    assert not has_pdf_eof(b"%%EOF" + b"x" * 20000)


def test_fetch_pdf_returns_validated_bytes():
    seen = {}

    def handler(request):
        seen["user_agent"] = request.headers["user-agent"]
        seen["accept"] = request.headers["accept"]
        return httpx.Response(200, content=PDF_BYTES)

    fetcher = make_fetcher(handler)
    assert fetcher.fetch_pdf("https://example.com/sds.pdf") == PDF_BYTES
    assert seen["user_agent"] == "test-agent"
    assert seen["accept"].startswith("application/pdf")
    fetcher.close()


def test_fetch_pdf_rejects_html_pages():
    fetcher = make_fetcher(lambda request: httpx.Response(200, content=b"<html>viewer</html>"))
    with pytest.raises(InvalidPdfError, match="no %PDF- header"):
        fetcher.fetch_pdf("https://example.com/view")


def test_fetch_pdf_requires_eof_marker():
    fetcher = make_fetcher(lambda request: httpx.Response(200, content=b"%PDF-1.4\ntruncated"))
    with pytest.raises(InvalidPdfError, match="EOF"):
        fetcher.fetch_pdf("https://example.com/cut.pdf")


def test_fetch_pdf_enforces_size_limit():
    fetcher = make_fetcher(
        lambda request: httpx.Response(200, content=PDF_BYTES),
        max_pdf_bytes=10,
    )
    with pytest.raises(FetchError, match="too large"):
        fetcher.fetch_pdf("https://example.com/big.pdf")


def test_client_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request.url)
        return httpx.Response(404)

    fetcher = make_fetcher(handler)
    with pytest.raises(FetchError, match="HTTP 404"):
        fetcher.fetch_pdf("https://example.com/missing.pdf")
    assert len(calls) == 1


def test_server_errors_are_retried():
    responses = [httpx.Response(503), httpx.Response(200, content=PDF_BYTES)]

    fetcher = make_fetcher(lambda request: responses.pop(0))
    assert fetcher.fetch_pdf("https://example.com/flaky.pdf") == PDF_BYTES
    assert responses == []


def test_fetch_html_truncates_and_decodes():
    body = "<p>Şanlıurfa wheel</p>".encode("utf-8")
    fetcher = make_fetcher(lambda request: httpx.Response(200, content=body), max_html_bytes=5)
    assert fetcher.fetch_html("https://example.com/page") == "<p>Ş"


def counting_body(pulled, chunks=10 * 1024, size=1024):
    def body():
        for _ in range(chunks):
            pulled.append(size)
            yield b"x" * size

    return body()


def test_fetch_pdf_stops_reading_once_body_passes_limit():
    pulled = []
    fetcher = make_fetcher(
        lambda request: httpx.Response(200, content=counting_body(pulled)),
        max_pdf_bytes=4096,
    )

    with pytest.raises(FetchError, match="too large"):
        fetcher.fetch_pdf("https://example.com/endless.pdf")
    assert sum(pulled) <= 5 * 1024


def test_fetch_html_stops_reading_at_limit():
    pulled = []
    fetcher = make_fetcher(
        lambda request: httpx.Response(200, content=counting_body(pulled)),
        max_html_bytes=2048,
    )

    text = fetcher.fetch_html("https://example.com/endless")

    assert text == "x" * 2048
    assert sum(pulled) <= 2048
