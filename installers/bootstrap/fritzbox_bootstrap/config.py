"""Install context threaded through every pipeline step."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from .retry import MAX_ATTEMPTS


DEFAULT_REPO = "kambriso/fritzbox-mcp-server"
LATEST = "latest"

ENV_VERSION = "FRITZBOX_MCP_VERSION"
ENV_INSTALL_DIR = "FRITZBOX_MCP_INSTALL_DIR"
ENV_CA_BUNDLE = "FRITZBOX_MCP_CA_BUNDLE"


def default_install_dir() -> Path:
    return Path.home() / ".local" / "bin"


def _env(environ: Mapping[str, str], key: str) -> str | None:
    # Empty values count as unset, like ${VAR:-default}.
    value = environ.get(key, "")
    return value or None


@dataclass(frozen=True)
class InstallContext:
    repo: str = DEFAULT_REPO
    version: str = LATEST
    install_dir: Path = field(default_factory=default_install_dir)
    binary_name: str = "fritzbox-mcp-server"
    archive_member: str = "fritz-mcp"
    asset_prefix: str = "fritz-mcp"
    manifest_name: str = "SHA256SUMS"
    download_base: str | None = None
    api_base: str = "https://api.github.com"
    ca_bundle: str | None = None
    metadata_timeout_s: int = 30
    download_timeout_s: int = 180
    max_attempts: int = MAX_ATTEMPTS
    scratch_root: Path | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.max_attempts <= MAX_ATTEMPTS:
            raise ValueError(f"max_attempts must be within 1..{MAX_ATTEMPTS}, got {self.max_attempts}")

    @property
    def release_base(self) -> str:
        if self.download_base:
            return self.download_base.rstrip("/")
        return f"https://github.com/{self.repo}/releases/download"

    @property
    def latest_release_url(self) -> str:
        return f"{self.api_base.rstrip('/')}/repos/{self.repo}/releases/latest"

    @property
    def target_path(self) -> Path:
        return self.install_dir / self.binary_name

    @property
    def project_url(self) -> str:
        return f"https://github.com/{self.repo}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> "InstallContext":
        environ = os.environ if environ is None else environ
        values: dict = {}

        version = _env(environ, ENV_VERSION)
        if version:
            values["version"] = version

        install_dir = _env(environ, ENV_INSTALL_DIR)
        if install_dir:
            values["install_dir"] = Path(install_dir).expanduser()

        ca_bundle = _env(environ, ENV_CA_BUNDLE)
        if ca_bundle:
            values["ca_bundle"] = ca_bundle

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

