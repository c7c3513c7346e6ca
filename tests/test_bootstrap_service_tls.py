from __future__ import annotations

import io
import ssl
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "installers" / "bootstrap"))

import fritzbox_bootstrap.service as service
from fritzbox_bootstrap.errors import DownloadError, NetworkError


def test_build_ssl_context_prefers_explicit_bundle(monkeypatch) -> None:
    calls: dict[str, str | None] = {}

    def fake_create_default_context(*, cafile=None):
        calls["cafile"] = cafile
        return object()

    monkeypatch.setattr(ssl, "create_default_context", fake_create_default_context)

    ctx = service._build_ssl_context("/tmp/custom-ca.pem")
    assert ctx is not None
    assert calls["cafile"] == "/tmp/custom-ca.pem"


def test_build_ssl_context_uses_certifi_bundle(monkeypatch) -> None:
    calls: dict[str, str | None] = {}

    def fake_create_default_context(*, cafile=None):
        calls["cafile"] = cafile
        return object()

    class FakeCertifi:
        @staticmethod
        def where() -> str:
            return "/tmp/certifi.pem"

    monkeypatch.setattr(ssl, "create_default_context", fake_create_default_context)
    monkeypatch.setattr(service, "certifi", FakeCertifi)

    ctx = service._build_ssl_context()
    assert ctx is not None
    assert calls["cafile"] == "/tmp/certifi.pem"


def test_urlopen_refuses_plain_http() -> None:
    with pytest.raises(NetworkError):
        service._urlopen("http://example.invalid/SHA256SUMS", timeout=1)


class _FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def test_download_file_truncates_existing_content(monkeypatch, tmp_path) -> None:
    dest = tmp_path / "SHA256SUMS"
    dest.write_bytes(b"stale partial content that is longer")
    monkeypatch.setattr(service, "_urlopen", lambda url, timeout, ca_bundle=None: _FakeResponse(b"fresh"))

    service.download_file("https://example/SHA256SUMS", dest)
    assert dest.read_bytes() == b"fresh"


def test_fetch_text_wraps_os_errors(monkeypatch) -> None:
    def fail(url, timeout, accept="*/*", ca_bundle=None):
        raise OSError("connection reset")

    monkeypatch.setattr(service, "_urlopen", fail)
    with pytest.raises(NetworkError):
        service.fetch_text("https://api.example/releases/latest")


def test_download_with_retry_fail_fail_succeed(tmp_path) -> None:
    dest = tmp_path / "fritz-mcp-linux-amd64.tar.xz"
    payloads = [b"partial-one-xxxxxxxxxxxxxxxx", b"partial-two-xxxxxxxxxxxxxx", b"final"]
    calls: list[str] = []
    sleeps: list[float] = []

    def flaky(url: str, path: Path) -> Path:
        calls.append(url)
        payload = payloads[len(calls) - 1]
        with path.open("wb") as fh:
            fh.write(payload)
        if len(calls) < 3:
            raise DownloadError("connection dropped")
        return path

    out = service.download_with_retry("https://example/a.tar.xz", dest, downloader=flaky, sleep=sleeps.append)
    assert out == dest
    assert dest.read_bytes() == b"final"
    assert len(calls) == 3
    assert sleeps == [2, 4]


def test_download_with_retry_reports_failure_without_exiting(tmp_path) -> None:
    calls: list[str] = []

    def always_fails(url: str, path: Path) -> Path:
        calls.append(url)
        raise DownloadError("HTTP 404")

    with pytest.raises(DownloadError) as excinfo:
        service.download_with_retry(
            "https://example/missing.tar.xz",
            tmp_path / "missing.tar.xz",
            downloader=always_fails,
            sleep=lambda _s: None,
        )

    assert not isinstance(excinfo.value, SystemExit)
    assert len(calls) == 3
    assert "after 3 attempts" in str(excinfo.value)
    assert excinfo.value.hint
