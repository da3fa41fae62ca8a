"""HTTP fetching of SDS PDFs and web pages, with an SSRF guard."""

from __future__ import annotations

import ipaddress
import re
import threading
import time
from typing import Optional
from urllib.parse import quote, urlsplit

import httpx

from .logging import get_logger

__all__ = [
    "UnsafeUrlError",
    "FetchError",
    "InvalidPdfError",
    "assert_safe_url",
    "resolve_pdf_url",
    "starts_with_pdf_header",
    "has_pdf_eof",
    "Fetcher",
]

logger = get_logger(__name__)

PDF_SIGNATURE = b"%PDF-"
PDF_EOF_MARKER = b"%%EOF"
PDF_EOF_SCAN_BYTES = 16 * 1024

PDF_ACCEPT = "application/pdf,application/octet-stream;q=0.9,*/*;q=0.8"
HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

_DRIVE_FILE_PATH = re.compile(r"/file/d/([^/]+)/")


class UnsafeUrlError(ValueError):
    """URL rejected before any request is made."""


class FetchError(RuntimeError):
    """Remote resource could not be downloaded."""


class InvalidPdfError(ValueError):
    """Downloaded bytes are not a complete PDF document."""


def _is_blocked_ipv4(host: str) -> bool:
    try:
        address = ipaddress.IPv4Address(host)
    except ValueError:
        return False
    first, second = address.packed[0], address.packed[1]
    return (
        first == 127
        or first == 10
        or (first == 192 and second == 168)
        or (first == 172 and 16 <= second <= 31)
        or (first == 169 and second == 254)
    )


def assert_safe_url(raw: str) -> str:
    """Return ``raw`` if it is an http(s) URL that does not target the local network."""
    try:
        parts = urlsplit((raw or "").strip())
    except ValueError as exc:
        raise UnsafeUrlError("Invalid URL") from exc

    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise UnsafeUrlError("Only http/https URLs are allowed")

    host = (parts.hostname or "").lower()
    if not host:
        raise UnsafeUrlError("Invalid URL")
    if host == "localhost" or host.endswith(".localhost"):
        raise UnsafeUrlError("Blocked host: localhost")
    if _is_blocked_ipv4(host):
        raise UnsafeUrlError("Blocked host: private IP address")

    return parts.geturl()


def resolve_pdf_url(url: str) -> str:
    """Turn Google Drive viewer links into direct download links."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    if "drive.google.com" in (parts.hostname or "").lower():
        match = _DRIVE_FILE_PATH.search(parts.path)
        if match:
            file_id = quote(match.group(1), safe="")
            return f"https://drive.google.com/uc?export=download&id={file_id}"
    return url


def starts_with_pdf_header(data: bytes) -> bool:
    body = data[3:] if data.startswith(b"\xef\xbb\xbf") else data
    return body.lstrip(b" \t\r\n").startswith(PDF_SIGNATURE)


def has_pdf_eof(data: bytes) -> bool:
    return PDF_EOF_MARKER in data[-PDF_EOF_SCAN_BYTES:]


class Fetcher:
    """Downloads PDFs and HTML pages through one shared httpx client."""

    def __init__(
        self,
        timeout: float,
        pdf_timeout: float,
        retries: int,
        user_agent: str,
        max_pdf_bytes: int,
        max_html_bytes: int,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.pdf_timeout = pdf_timeout
        self.retries = max(1, retries)
        self.max_pdf_bytes = max_pdf_bytes
        self.max_html_bytes = max_html_bytes
        self._client = httpx.Client(
            timeout=timeout,
            headers={"User-Agent": user_agent},
            follow_redirects=True,
            limits=httpx.Limits(max_connections=8, max_keepalive_connections=4),
            transport=transport,
        )
        self._lock = threading.Lock()

    def close(self) -> None:
        with self._lock:
            self._client.close()

    def fetch_pdf(self, url: str) -> bytes:
        """Download and validate a PDF; raises FetchError or InvalidPdfError."""
        data = self._download(
            url,
            headers={
                "Accept": PDF_ACCEPT,
                "Accept-Language": "en-US,en;q=0.9,tr;q=0.8",
            },
            timeout=self.pdf_timeout,
            limit=self.max_pdf_bytes,
            truncate=False,
        )

        if not starts_with_pdf_header(data):
            head = data[:512].decode("latin-1")
            snippet = " ".join(head.split())[:220]
            raise InvalidPdfError(
                f'This link does not return a PDF (no %PDF- header). First bytes: "{snippet}"'
            )
        if not has_pdf_eof(data):
            raise InvalidPdfError(
                "PDF validation failed: %%EOF not found; the link may point to a viewer page"
            )

        logger.info("pdf_fetched", url=url, size=len(data))
        return data

    def fetch_html(self, url: str) -> str:
        data = self._download(
            url,
            headers={"Accept": HTML_ACCEPT},
            timeout=self.timeout,
            limit=self.max_html_bytes,
            truncate=True,
        )
        return data.decode("utf-8", errors="replace")

    @staticmethod
    def _read_body(response: httpx.Response, limit: int, truncate: bool) -> bytes:
        """Read at most ``limit`` bytes, truncating or raising past it."""
        declared = int(response.headers.get("content-length") or 0)
        if not truncate and declared > limit:
            raise FetchError("Response is too large (content-length)")

        chunks = []
        total = 0
        for chunk in response.iter_bytes():
            room = limit - total
            if len(chunk) > room:
                if not truncate:
                    raise FetchError("Response is too large (downloaded body)")
                chunks.append(chunk[:room])
                break
            chunks.append(chunk)
            total += len(chunk)
            if truncate and total == limit:
                break
        return b"".join(chunks)

    def _download(
        self,
        url: str,
        headers: dict,
        timeout: float,
        limit: int,
        truncate: bool,
    ) -> bytes:
        for attempt in range(1, self.retries + 1):
            try:
                with self._lock:
                    with self._client.stream("GET", url, headers=headers, timeout=timeout) as response:
                        response.raise_for_status()
                        return self._read_body(response, limit, truncate)
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                if status < 500 or attempt == self.retries:
                    raise FetchError(f"Download failed (HTTP {status})") from exc
                logger.warning("http_retry", url=url, attempt=attempt, status=status)
            except httpx.TimeoutException as exc:
                if attempt == self.retries:
                    raise FetchError("Timed out while downloading") from exc
                logger.warning("http_retry", url=url, attempt=attempt, error="timeout")
            except httpx.HTTPError as exc:
                if attempt == self.retries:
                    raise FetchError(f"Download failed: {exc}") from exc
                logger.warning("http_retry", url=url, attempt=attempt, error=str(exc))
            backoff = min(8.0, 2 ** (attempt - 1))
            time.sleep(backoff)
        raise FetchError("Download failed")
