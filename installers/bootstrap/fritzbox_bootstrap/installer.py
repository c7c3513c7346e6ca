"""Archive extraction and placement of the executable."""

from __future__ import annotations

import enum
import os
import shutil
import stat
import sys
import tarfile
from pathlib import Path
from typing import IO, Protocol

from .errors import ArchiveError, CopyError, DirectoryCreateError, PermissionSetError, PermissionVerificationError
from .logging_setup import get_logger


class InstallOutcome(enum.Enum):
    INSTALLED = "installed"
    DECLINED = "declined"


class ConfirmationPolicy(Protocol):
    def confirm(self, question: str) -> bool: ...


class AlwaysProceed:
    def confirm(self, question: str) -> bool:
        return True


class InteractiveConfirmation:
    def __init__(self, stdin: IO[str] | None = None, stdout: IO[str] | None = None) -> None:
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stderr

    def confirm(self, question: str) -> bool:
        self.stdout.write(f"{question} [y/N] ")
        self.stdout.flush()
        answer = self.stdin.readline()
        # EOF reads as an empty string and declines.
        return answer.strip().lower() in ("y", "yes")


def policy_for_stdin(stream: IO[str] | None = None) -> ConfirmationPolicy:
    stream = stream or sys.stdin
    if stream is not None and hasattr(stream, "isatty") and stream.isatty():
        return InteractiveConfirmation(stdin=stream)
    return AlwaysProceed()


def _find_member(archive: tarfile.TarFile, member: str) -> tarfile.TarInfo | None:
    for info in archive.getmembers():
        if info.name in (member, f"./{member}") and info.isfile():
            return info
    return None


def extract_binary(archive_path: Path, dest_dir: Path, member: str = "fritz-mcp") -> Path:
    """Stream the single expected executable out of a ``.tar.xz`` archive."""
    import lzma

    get_logger().info("Extracting binary...", extra={"event": "extract_start"})
    dest = dest_dir / member
    try:
        with tarfile.open(archive_path, mode="r:xz") as archive:
            info = _find_member(archive, member)
            if info is None:
                raise ArchiveError(f"Extracted binary not found: {member}")
            source = archive.extractfile(info)
            if source is None:
                raise ArchiveError(f"Failed to extract {member} from {archive_path.name}")
            with source, dest.open("wb") as fh:
                shutil.copyfileobj(source, fh)
    except (tarfile.TarError, lzma.LZMAError, EOFError, OSError) as exc:
        raise ArchiveError(f"Failed to extract tarball {archive_path.name}: {exc}") from exc
    return dest


def _is_executable(path: Path) -> bool:
    mode = path.stat().st_mode
    return bool(mode & stat.S_IXUSR) and os.access(path, os.X_OK)


def install_binary(
    source: Path,
    install_dir: Path,
    binary_name: str,
    policy: ConfirmationPolicy,
) -> InstallOutcome:
    logger = get_logger()

    if not install_dir.is_dir():
        logger.info(f"Creating installation directory: {install_dir}", extra={"event": "mkdir"})
        try:
            install_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DirectoryCreateError(f"Failed to create installation directory: {install_dir}: {exc}") from exc

    target = install_dir / binary_name
    if target.is_file():
        logger.warning(f"Existing installation found at: {target}", extra={"event": "existing_install"})
        if not policy.confirm("Overwrite existing installation?"):
            return InstallOutcome.DECLINED

    logger.info(f"Installing to: {target}", extra={"event": "install_copy"})
    try:
        shutil.copyfile(source, target)
    except OSError as exc:
        raise CopyError(f"Failed to copy binary to {target}: {exc}") from exc

    try:
        target.chmod(target.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as exc:
        raise PermissionSetError(f"Failed to make binary executable: {target}: {exc}") from exc

    if not _is_executable(target):
        raise PermissionVerificationError(f"Installed binary is not executable: {target}")

    return InstallOutcome.INSTALLED
