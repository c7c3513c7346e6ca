"""Download, verify and install pipeline shared by the CLI and library callers."""

from __future__ import annotations

import enum
import hashlib
import importlib
import tempfile
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator

from .checksum import verify_checksum
from .config import LATEST, InstallContext
from .errors import DependencyError, EmptyDownloadError, IntegrityError, InstallerError
from .installer import ConfirmationPolicy, InstallOutcome, extract_binary, install_binary
from .logging_setup import get_logger
from .resolver import PlatformTarget, archive_name, detect_target, release_urls, resolve_version
from .service import Downloader, download_file, download_with_retry, fetch_text


class PipelineState(enum.Enum):
    START = "start"
    CHECK_DEPS = "check_deps"
    DETECT_PLATFORM = "detect_platform"
    RESOLVE_VERSION = "resolve_version"
    FETCH_MANIFEST = "fetch_manifest"
    FETCH_ASSET = "fetch_asset"
    VERIFY = "verify"
    EXTRACT = "extract"
    INSTALL = "install"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# (module, remediation) pairs the interpreter must provide.
_REQUIRED_MODULES = (
    ("lzma", "Python was built without lzma support; install liblzma/xz and rebuild Python."),
    ("ssl", "Python was built without ssl support; install OpenSSL and rebuild Python."),
)


@dataclass
class InstallResult:
    target: PlatformTarget | None = None
    version: str | None = None
    target_path: Path | None = None
    outcome: InstallOutcome | None = None
    scratch_dir: Path | None = None
    states: list[PipelineState] = field(default_factory=lambda: [PipelineState.START])

    @property
    def state(self) -> PipelineState:
        return self.states[-1]


def check_dependencies() -> None:
    get_logger().info("Checking dependencies...", extra={"event": "check_deps"})
    for module, hint in _REQUIRED_MODULES:
        try:
            importlib.import_module(module)
        except ImportError as exc:
            raise DependencyError(f"Required Python module '{module}' is unavailable", hint=hint) from exc
    if "sha256" not in hashlib.algorithms_available:
        raise DependencyError("SHA-256 hashing is unavailable in this Python build")
    get_logger().info("✓ All dependencies found", extra={"event": "deps_ok", "success": True})


@contextmanager
def _step(result: InstallResult, state: PipelineState) -> Iterator[None]:
    result.states.append(state)
    try:
        yield
    except InstallerError as exc:
        if exc.failed_state is None:
            exc.failed_state = state
        result.states.append(PipelineState.FAILED)
        raise


def _require_non_empty(path: Path, label: str) -> None:
    if not path.is_file() or path.stat().st_size == 0:
        raise EmptyDownloadError(f"Downloaded {label} is empty")


def run_install(
    context: InstallContext,
    policy: ConfirmationPolicy,
    downloader: Downloader | None = None,
    fetch_metadata: Callable[[], str] | None = None,
    detect: Callable[[], PlatformTarget] = detect_target,
    sleep: Callable[[float], None] = time.sleep,
    result: InstallResult | None = None,
) -> InstallResult:
    """Run every step in order and return the final result.

    Any ``InstallerError`` is tagged with the state it failed in and
    re-raised; the scratch directory is removed on every exit path. Callers
    that need the partial result on failure pass their own ``result``.
    """
    logger = get_logger()
    result = result if result is not None else InstallResult()

    def _download(url: str, dest: Path) -> Path:
        return download_file(url, dest, timeout=context.download_timeout_s, ca_bundle=context.ca_bundle)

    def _latest_metadata() -> str:
        return fetch_text(context.latest_release_url, timeout=context.metadata_timeout_s, ca_bundle=context.ca_bundle)

    downloader = downloader or _download
    fetch_metadata = fetch_metadata or _latest_metadata

    with tempfile.TemporaryDirectory(prefix="fritzbox-mcp-install-", dir=context.scratch_root) as tmp:
        scratch = Path(tmp)
        result.scratch_dir = scratch

        with _step(result, PipelineState.CHECK_DEPS):
            check_dependencies()

        with _step(result, PipelineState.DETECT_PLATFORM):
            target = detect()
            result.target = target
            logger.info(f"Detected platform: {target.tag}", extra={"event": "platform"})

        with _step(result, PipelineState.RESOLVE_VERSION):
            if context.version == LATEST:
                logger.info("Resolving latest version...", extra={"event": "resolve_latest"})
            version = resolve_version(context.version, fetch_metadata)
            result.version = version
            logger.info(f"Installing version: {version}", extra={"event": "version"})

        urls = release_urls(
            context.release_base,
            version,
            target,
            prefix=context.asset_prefix,
            manifest_name=context.manifest_name,
        )
        manifest_path = scratch / context.manifest_name
        archive_path = scratch / archive_name(target, context.asset_prefix)

        with _step(result, PipelineState.FETCH_MANIFEST):
            logger.info(f"Downloading {context.manifest_name}...", extra={"event": "fetch_manifest", "url": urls.manifest})
            download_with_retry(
                urls.manifest, manifest_path, downloader=downloader, attempts=context.max_attempts, sleep=sleep
            )
            _require_non_empty(manifest_path, context.manifest_name)

        with _step(result, PipelineState.FETCH_ASSET):
            logger.info(f"Downloading {archive_path.name}...", extra={"event": "fetch_asset", "url": urls.archive})
            download_with_retry(
                urls.archive, archive_path, downloader=downloader, attempts=context.max_attempts, sleep=sleep
            )
            _require_non_empty(archive_path, "tarball")

        with _step(result, PipelineState.VERIFY):
            try:
                verify_checksum(archive_path, manifest_path)
            except IntegrityError:
                archive_path.unlink(missing_ok=True)
                raise

        with _step(result, PipelineState.EXTRACT):
            extracted = extract_binary(archive_path, scratch, context.archive_member)

        with _step(result, PipelineState.INSTALL):
            result.target_path = context.target_path
            result.outcome = install_binary(extracted, context.install_dir, context.binary_name, policy)

    result.states.append(PipelineState.SUCCEEDED)
    return result
