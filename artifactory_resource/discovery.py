"""Version discovery: turn search results into an ordered version list.

Two modes, picked once per check:

- Unversioned (no ``version`` configured): paths come back in search order,
  unfiltered.
- Versioned: the previously emitted path comes first, followed by every
  candidate whose version satisfies the configured range and is strictly
  greater than the previous one, in ascending semver order.

Nothing here performs I/O; logging goes through an optional reporter.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import VersionedFile
from .ranges import VersionRange, build_range
from .reporter import Reporter
from .versions import Found, NoVersion, extract_version


def previous_version(
    token: str, reporter: Reporter | None = None
) -> VersionedFile | None:
    """Resolve the version token Concourse handed back to us.

    Returns None on the first check (empty token) and when the token has no
    usable version, in which case discovery behaves as if there were no
    previous version at all.
    """
    result = extract_version(token)
    if result is None:
        return None
    if isinstance(result, Found):
        return result.file
    if reporter:
        reporter.warning(f"Ignoring previous version '{token}': no valid semver in it")
    return None


def filter_candidates(
    candidates: Iterable[str],
    version_range: VersionRange,
    previous: VersionedFile | None = None,
    reporter: Reporter | None = None,
) -> list[VersionedFile]:
    """Extract versions from candidate paths and keep those in range.

    Paths without a version, or with an invalid one, are logged and
    skipped. So are versions outside ``version_range``.
    """
    kept: list[VersionedFile] = []
    for path in candidates:
        if previous is not None and path == previous.path:
            continue

        result = extract_version(path)
        if result is None:
            continue
        if not isinstance(result, Found):
            if reporter:
                detail = (
                    "Cannot find any semver in file."
                    if isinstance(result, NoVersion)
                    else result.detail
                )
                reporter.warning(f"Error for file '{path}': {detail}")
            continue

        file = result.file
        if not version_range(file.version):
            if reporter:
                reporter.info(
                    f"Skipping file '{path}' with version '{file.version}' "
                    f"because it doesn't satisfy range '{version_range.description}'"
                )
            continue

        if reporter:
            reporter.info(f"Found valid file '{path}' in version '{file.version}'")
        kept.append(file)
    return kept


def sort_files(files: Iterable[VersionedFile]) -> list[VersionedFile]:
    """Sort by semver precedence, then by path for identical versions.

    Build metadata is ignored by ``semver.Version`` comparisons, so
    "1.0.0+b2" and "1.0.0+b1" tie and fall back to path order.
    """
    return sorted(files, key=lambda f: (f.version, f.path))


def rank_versions(
    candidates: list[str],
    version_range: VersionRange | None,
    previous: VersionedFile | None = None,
    reporter: Reporter | None = None,
) -> list[str]:
    """Order candidate paths for the pipeline.

    Args:
        candidates: Paths returned by the search, in search order.
        version_range: Range to filter on, or None for unversioned mode.
        previous: The version emitted by the last check, if any. Always
                  emitted first in versioned mode, even when it no longer
                  satisfies the range.
        reporter: Receives per-file skip/accept messages.

    Returns:
        Paths, oldest first.
    """
    if not candidates:
        return []
    if version_range is None:
        return list(candidates)

    versions: list[str] = []
    if previous is not None:
        versions.append(previous.path)
    kept = filter_candidates(candidates, version_range, previous, reporter)
    versions.extend(f.path for f in sort_files(kept))
    return versions


def retrieve_versions(
    candidates: list[str],
    configured: str,
    previous_token: str = "",
    reporter: Reporter | None = None,
) -> list[str]:
    """Run discovery end to end for one check.

    Picks the mode from ``configured``, resolves the previous token and
    builds the range before ranking. With no candidates at all the result
    is empty and the range is not even parsed.

    Raises:
        InvalidRangeExpression: If ``configured`` is not a valid range.
    """
    if not candidates:
        return []
    if not configured:
        return rank_versions(candidates, None)

    previous = previous_version(previous_token, reporter)
    version_range = build_range(configured, previous)
    return rank_versions(candidates, version_range, previous, reporter)
