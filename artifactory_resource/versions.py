"""Version parsing utilities.

Finds a semantic version inside an artifact path and normalizes incomplete
version strings (e.g., "1.0" → "1.0.0") so that everything downstream works
on full major.minor.patch triplets.
"""

from __future__ import annotations

import re

import semver
from pydantic import BaseModel, ConfigDict

from .models import VersionedFile

SEMVER_PATTERN = (
    r"(v|-|_)?v?("
    r"(?:0|[1-9]\d*)(?:\.(?:0|[1-9]\d*)){0,2}"
    r"(?:-[\da-z\-]+(?:\.[\da-z\-]+)*)?"
    r"(?:\+[\da-z\-]+(?:\.[\da-z\-]+)*)?"
    r")"
)

_SEMVER_RE = re.compile(SEMVER_PATTERN, re.IGNORECASE)
# Alphanumeric with at least one letter, so ".zip" and ".bz2" qualify but the
# ".3" of "app-1.2.3" stays part of the version.
_EXTENSION_RE = re.compile(r"\.(?=[0-9a-z]*[a-z])[0-9a-z]+$", re.IGNORECASE)


class Found(BaseModel):
    model_config = ConfigDict(frozen=True)

    file: VersionedFile


class NoVersion(BaseModel):
    """No semver-looking substring in the file name."""

    model_config = ConfigDict(frozen=True)

    path: str


class ParseError(BaseModel):
    """A version-looking substring was found but is not valid semver."""

    model_config = ConfigDict(frozen=True)

    path: str
    detail: str


ExtractResult = Found | NoVersion | ParseError


def sanitize_version(raw: str) -> str:
    """Pad a partial version to three dot-separated components.

    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3" and anything longer (e.g., "1.2.3-rc.1") is returned as is.
    """
    parts = raw.split(".")
    if len(parts) == 1:
        return raw + ".0.0"
    if len(parts) == 2:
        return raw + ".0"
    return raw


def parse_version(raw: str) -> semver.Version:
    """Sanitize then parse a version string.

    Raises:
        ValueError: If the sanitized string is not valid semver.
    """
    return semver.Version.parse(sanitize_version(raw))


def strip_extension(filename: str) -> str:
    """Remove a trailing file extension such as ".zip" or ".gz"."""
    return _EXTENSION_RE.sub("", filename)


def extract_version(path: str) -> ExtractResult | None:
    """Find the semantic version encoded in a repository path.

    Only the last path segment is searched, with its extension removed.
    The first match of ``SEMVER_PATTERN`` wins, so for
    "artifact-v1.2.3.tar.gz" the version is 1.2.3 and for "build_2.zip"
    it is 2.0.0.

    Args:
        path: Repository-relative path, e.g. "libs/app/app-1.2.3.zip".

    Returns:
        None for an empty path (nothing to extract), otherwise ``Found``,
        ``NoVersion`` or ``ParseError``.
    """
    if not path:
        return None

    filename = strip_extension(path.split("/")[-1])
    match = _SEMVER_RE.search(filename)
    if match is None or not match.group(2):
        return NoVersion(path=path)

    try:
        version = parse_version(match.group(2))
    except ValueError as exc:
        return ParseError(path=path, detail=str(exc))
    return Found(file=VersionedFile(path=path, version=version))
