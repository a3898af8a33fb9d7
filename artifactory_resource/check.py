"""The ``check`` executable: report versions available in Artifactory.

Reads ``{"source": ..., "version": {"version": <path>} | null}`` on stdin
and prints ``[{"version": <path>}, ...]`` on stdout, oldest first.
"""

from __future__ import annotations

import json
import sys

from .client import ArtifactoryClient, SearchSpec
from .discovery import retrieve_versions
from .errors import ResourceError
from .models import CheckRequest, ResourceVersion, parse_request
from .reporter import Reporter


def search_spec(request: CheckRequest) -> SearchSpec:
    source = request.source
    return SearchSpec(
        pattern=source.pattern, props=source.props, recursive=source.recursive
    )


def run_check(
    request: CheckRequest, client: ArtifactoryClient, reporter: Reporter
) -> list[ResourceVersion]:
    """Search the repository and rank what was found.

    Exits through ``reporter.fatal`` on a search failure or an invalid
    version range.
    """
    source = request.source
    reporter.step(f"Searching files matching '{source.pattern}'")
    try:
        candidates = client.search(search_spec(request))
    except ResourceError as exc:
        reporter.fatal(f"Error when trying to find latest file: {exc}")
    reporter.info(f"  {len(candidates)} files found")

    if source.version:
        reporter.step(f"Filtering files on version range '{source.version}'")
    try:
        paths = retrieve_versions(
            candidates, source.version, request.previous, reporter
        )
    except ResourceError as exc:
        reporter.fatal(f"Error when retrieving versions: {exc}")
    return [ResourceVersion(version=path) for path in paths]


def main() -> None:
    """Entry point for ``/opt/resource/check``."""
    reporter = Reporter()
    try:
        request = parse_request(CheckRequest, sys.stdin.read())
    except ResourceError as exc:
        reporter.fatal(str(exc))

    reporter = Reporter(request.source.log_level)
    try:
        client = ArtifactoryClient.from_source(request.source, reporter)
    except ResourceError as exc:
        reporter.fatal(str(exc))

    versions = run_check(request, client, reporter)
    print(json.dumps([v.model_dump() for v in versions]))


if __name__ == "__main__":
    main()
