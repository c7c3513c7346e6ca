"""Installer error taxonomy.

Every failure the pipeline can hit is an ``InstallerError`` subclass. Helpers
raise to their caller; only the CLI turns an error into an exit status.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .pipeline import PipelineState


class InstallerError(Exception):
    category = "installer"

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint
        self.failed_state: PipelineState | None = None


class DependencyError(InstallerError):
    category = "dependency"


class UnsupportedPlatformError(InstallerError):
    category = "platform"


class NetworkError(InstallerError):
    category = "network"


class DownloadError(NetworkError):
    pass


class EmptyDownloadError(NetworkError):
    pass


class VersionResolutionError(NetworkError):
    pass


class IntegrityError(InstallerError):
    category = "integrity"


class ChecksumNotFoundError(IntegrityError):
    pass


class MalformedChecksumError(IntegrityError):
    pass


class ChecksumMismatchError(IntegrityError):
    def __init__(self, filename: str, expected: str, actual: str) -> None:
        super().__init__(f"Checksum verification failed for {filename}: expected {expected}, actual {actual}")
        self.filename = filename
        self.expected = expected
        self.actual = actual


class ArchiveError(InstallerError):
    category = "archive"


class FilesystemError(InstallerError):
    category = "filesystem"


class DirectoryCreateError(FilesystemError):
    pass


class CopyError(FilesystemError):
    pass


class PermissionSetError(FilesystemError):
    pass


class PermissionVerificationError(FilesystemError):
    """The copy and chmod succeeded but the file is still not executable."""
