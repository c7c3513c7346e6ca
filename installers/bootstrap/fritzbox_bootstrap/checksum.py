"""SHA-256 manifest lookup and archive verification."""

from __future__ import annotations

import enum
import hashlib
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .errors import ChecksumMismatchError, ChecksumNotFoundError, MalformedChecksumError
from .logging_setup import get_logger


_SHA256_RE = re.compile(r"^[a-fA-F0-9]{64}$")


class MatchStatus(enum.Enum):
    MATCH = "match"
    MISMATCH = "mismatch"
    NOT_FOUND = "not_found"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class MatchResult:
    status: MatchStatus
    expected: str | None
    actual: str

    @property
    def ok(self) -> bool:
        return self.status is MatchStatus.MATCH


def lookup_expected(manifest_text: str, filename: str) -> str | None:
    """First digest whose line names ``filename``.

    Lines look like ``<digest>  <name>``. A directory prefix on the name
    (``dist/<name>``, ``./<name>``) and sha256sum's ``*`` binary marker are
    ignored.
    """
    for line in manifest_text.splitlines():
        parts = line.strip().split()
        if len(parts) < 2:
            continue
        names = [p[1:] if p.startswith("*") else p for p in parts[1:]]
        if any(name == filename or PurePosixPath(name).name == filename for name in names):
            return parts[0]
    return None


def _evaluate(expected_entry: str | None, actual: str) -> MatchResult:
    if expected_entry is None:
        return MatchResult(MatchStatus.NOT_FOUND, None, actual)
    if not _SHA256_RE.match(expected_entry):
        return MatchResult(MatchStatus.MALFORMED, expected_entry, actual)
    if expected_entry.lower() != actual.lower():
        return MatchResult(MatchStatus.MISMATCH, expected_entry, actual)
    return MatchResult(MatchStatus.MATCH, expected_entry, actual)


def match_checksum(expected_entry: str | None, file_bytes: bytes) -> MatchResult:
    return _evaluate(expected_entry, hashlib.sha256(file_bytes).hexdigest())


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def verify_checksum(file_path: Path, manifest_path: Path) -> MatchResult:
    logger = get_logger()
    logger.info("Verifying SHA256 checksum...", extra={"event": "verify_start"})

    filename = file_path.name
    expected = lookup_expected(manifest_path.read_text(encoding="utf-8", errors="replace"), filename)
    result = _evaluate(expected, sha256_file(file_path))

    if result.status is MatchStatus.NOT_FOUND:
        raise ChecksumNotFoundError(f"No checksum found for {filename} in {manifest_path.name}")
    if result.status is MatchStatus.MALFORMED:
        raise MalformedChecksumError(f"Invalid checksum format for {filename}: {result.expected}")
    if result.status is MatchStatus.MISMATCH:
        raise ChecksumMismatchError(filename, expected=result.expected or "", actual=result.actual)

    logger.info("✓ Checksum verified", extra={"event": "verify_ok", "success": True})
    return result
