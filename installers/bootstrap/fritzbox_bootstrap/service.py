"""HTTPS transport and download-with-retry used by the install pipeline."""

from __future__ import annotations

import shutil
import time
import urllib.error
import urllib.request
from pathlib import Path
from typing import TYPE_CHECKING, Callable

import certifi

from . import __version__
from .errors import DownloadError, NetworkError
from .logging_setup import get_logger
from .retry import MAX_ATTEMPTS, backoff_delay, retry_call

if TYPE_CHECKING:
    import ssl


USER_AGENT = f"FritzboxMcpInstaller/{__version__} (+https://github.com/kambriso/fritzbox-mcp-server)"

Downloader = Callable[[str, Path], Path]


def _build_ssl_context(ca_bundle: str | None = None) -> ssl.SSLContext:
    """Create TLS context for installer downloads with explicit CA handling."""
    import ssl

    if ca_bundle:
        return ssl.create_default_context(cafile=ca_bundle)
    return ssl.create_default_context(cafile=certifi.where())


def _urlopen(url: str, timeout: int, accept: str = "*/*", ca_bundle: str | None = None):
    if not url.lower().startswith("https://"):
        raise NetworkError(f"Refusing non-HTTPS URL: {url}")
    request = urllib.request.Request(
        url,
        headers={
            "User-Agent": USER_AGENT,
            "Accept": accept,
        },
    )
    return urllib.request.urlopen(request, timeout=timeout, context=_build_ssl_context(ca_bundle))


def fetch_text(url: str, timeout: int = 30, ca_bundle: str | None = None) -> str:
    try:
        with _urlopen(url, timeout=timeout, accept="application/vnd.github+json", ca_bundle=ca_bundle) as response:
            return response.read().decode("utf-8", errors="replace")
    except (urllib.error.URLError, OSError) as exc:
        raise NetworkError(f"Request to {url} failed: {exc}") from exc


def download_file(url: str, dest: Path, timeout: int = 180, ca_bundle: str | None = None) -> Path:
    """Stream ``url`` into ``dest``, truncating whatever was there."""
    try:
        with _urlopen(url, timeout=timeout, ca_bundle=ca_bundle) as response, dest.open("wb") as fh:
            shutil.copyfileobj(response, fh, 1024 * 1024)
    except (urllib.error.URLError, OSError) as exc:
        raise DownloadError(f"Download of {url} failed: {exc}") from exc
    return dest


def download_with_retry(
    url: str,
    dest: Path,
    downloader: Downloader | None = None,
    attempts: int = MAX_ATTEMPTS,
    delay_for: Callable[[int], float] = backoff_delay,
    sleep: Callable[[float], None] = time.sleep,
) -> Path:
    """Download with bounded retries.

    Raises ``DownloadError`` after the last failed attempt. Never exits.
    """
    fetch = downloader or download_file
    logger = get_logger()

    def _attempt() -> Path:
        return fetch(url, dest)

    def _announce(attempt: int, total: int, delay: float) -> None:
        logger.warning(
            f"Retry attempt {attempt}/{total} in {delay:g}s...",
            extra={"event": "download_retry", "url": url, "attempt": attempt},
        )

    try:
        return retry_call(
            _attempt,
            attempts=attempts,
            delay_for=delay_for,
            sleep=sleep,
            on_retry=_announce,
            retry_on=(NetworkError, OSError),
        )
    except (NetworkError, OSError) as exc:
        raise DownloadError(
            f"Failed to download {url} after {attempts} attempts: {exc}",
            hint="Please check your internet connection and verify the version exists",
        ) from exc
