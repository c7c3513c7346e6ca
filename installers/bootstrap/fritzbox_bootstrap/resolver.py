"""Platform, version and release asset resolution."""

from __future__ import annotations

import platform
import re
from dataclasses import dataclass
from typing import Callable

from .config import ENV_VERSION, LATEST
from .errors import NetworkError, UnsupportedPlatformError, VersionResolutionError


_OS_MAP = {
    "linux": "linux",
    "darwin": "darwin",
}

_ARCH_MAP = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i686": "386",
    "i386": "386",
    "x86": "386",
    "armv7l": "arm",
    "armv7": "arm",
    "arm": "arm",
}

_TAG_NAME_RE = re.compile(r'"tag_name"\s*:\s*"([^"]*)"')

_VERSION_HINT = f"Please specify version explicitly with {ENV_VERSION}, e.g. {ENV_VERSION}=v0.4.0"


@dataclass(frozen=True)
class PlatformTarget:
    os_name: str
    arch: str

    @property
    def tag(self) -> str:
        return f"{self.os_name}-{self.arch}"


@dataclass(frozen=True)
class ReleaseUrls:
    archive: str
    manifest: str


def _normalize_os(system: str) -> str:
    os_name = _OS_MAP.get(system.strip().lower())
    if os_name is None:
        raise UnsupportedPlatformError(
            f"Unsupported operating system: {system}",
            hint="Supported: Linux, macOS (Darwin)",
        )
    return os_name


def _normalize_arch(machine: str) -> str:
    arch = _ARCH_MAP.get(machine.strip().lower())
    if arch is None:
        raise UnsupportedPlatformError(
            f"Unsupported architecture: {machine}",
            hint="Supported: x86_64, aarch64, i686, armv7l",
        )
    return arch


def resolve_target(system: str, machine: str) -> PlatformTarget:
    return PlatformTarget(os_name=_normalize_os(system), arch=_normalize_arch(machine))


def detect_target() -> PlatformTarget:
    return resolve_target(platform.system(), platform.machine())


def archive_name(target: PlatformTarget, prefix: str = "fritz-mcp") -> str:
    return f"{prefix}-{target.tag}.tar.xz"


def release_urls(
    base: str,
    version: str,
    target: PlatformTarget,
    prefix: str = "fritz-mcp",
    manifest_name: str = "SHA256SUMS",
) -> ReleaseUrls:
    root = f"{base.rstrip('/')}/{version}"
    return ReleaseUrls(
        archive=f"{root}/{archive_name(target, prefix)}",
        manifest=f"{root}/{manifest_name}",
    )


def extract_tag_name(payload: str) -> str | None:
    """Pull the first ``tag_name`` value out of a release payload.

    Plain text matching, so truncated or otherwise invalid JSON still works.
    """
    match = _TAG_NAME_RE.search(payload)
    if match is None:
        return None
    return match.group(1).strip() or None


def resolve_version(requested: str, fetch_metadata: Callable[[], str]) -> str:
    """Return ``requested`` unchanged unless it is ``latest``.

    For ``latest`` the release metadata endpoint is read once through
    ``fetch_metadata`` and the newest tag is extracted from it.
    """
    if requested and requested != LATEST:
        return requested

    try:
        payload = fetch_metadata()
    except NetworkError as exc:
        raise VersionResolutionError(f"Failed to query GitHub API for latest version: {exc}", hint=_VERSION_HINT) from exc

    if not payload or not payload.strip():
        raise VersionResolutionError("Failed to query GitHub API for latest version", hint=_VERSION_HINT)

    tag = extract_tag_name(payload)
    if tag is None:
        raise VersionResolutionError("Failed to parse version from GitHub API response", hint=_VERSION_HINT)
    return tag
