"""Bootstrap installer for fritzbox-mcp-server release binaries."""

__version__ = "0.1.0"

from .checksum import MatchResult, MatchStatus, lookup_expected, match_checksum, verify_checksum
from .config import InstallContext
from .errors import InstallerError
from .installer import (
    AlwaysProceed,
    ConfirmationPolicy,
    InstallOutcome,
    InteractiveConfirmation,
    extract_binary,
    install_binary,
    policy_for_stdin,
)
from .pipeline import InstallResult, PipelineState, run_install
from .resolver import PlatformTarget, resolve_target, resolve_version
from .retry import retry_call
from .service import download_with_retry

__all__ = [
    "AlwaysProceed",
    "ConfirmationPolicy",
    "InstallContext",
    "InstallOutcome",
    "InstallResult",
    "InstallerError",
    "InteractiveConfirmation",
    "MatchResult",
    "MatchStatus",
    "PipelineState",
    "PlatformTarget",
    "download_with_retry",
    "extract_binary",
    "install_binary",
    "lookup_expected",
    "match_checksum",
    "policy_for_stdin",
    "resolve_target",
    "resolve_version",
    "retry_call",
    "run_install",
    "verify_checksum",
]
