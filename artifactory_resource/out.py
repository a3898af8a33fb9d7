"""The ``out`` executable: upload build output to Artifactory.

Invoked as ``out <build-dir>`` with ``{"source": ..., "params": ...}`` on
stdin; prints the new version and upload metadata on stdout.
"""

from __future__ import annotations

import argparse
import sys
import time
from collections.abc import Callable

from .client import (
    ArtifactoryClient,
    UploadSpec,
    add_trailing_slash,
    remove_starting_slash,
)
from .discovery import sort_files
from .errors import ResourceError
from .models import (
    MetadataField,
    OutParams,
    OutRequest,
    OutResponse,
    ResourceVersion,
    parse_request,
)
from .reporter import Reporter
from .versions import Found, extract_version

MISSING_TARGET = (
    "You must set a target (in the form of: [repository_name]/[repository_path]) "
    "in out parameter."
)


def source_folder(build_dir: str, params: OutParams) -> str:
    """Local pattern to upload: ``<build_dir>/<params.source>``."""
    return add_trailing_slash(build_dir) + remove_starting_slash(params.source)


def latest_upload(paths: list[str]) -> str:
    """Pick the uploaded path a following check would report last.

    That is the one with the highest semver; when no path carries a
    version, the lexicographically greatest one.
    """
    results = (extract_version(path) for path in paths)
    versioned = [r.file for r in results if isinstance(r, Found)]
    if versioned:
        return sort_files(versioned)[-1].path
    return max(paths)


def format_elapsed(seconds: float) -> str:
    return f"{seconds:.3f}s"


def run_out(
    build_dir: str,
    request: OutRequest,
    client: ArtifactoryClient,
    reporter: Reporter,
    clock: Callable[[], float] = time.monotonic,
) -> OutResponse:
    """Upload the matching files and describe the result.

    Any failed file is fatal, even when others made it; the counts are
    logged before exiting.
    """
    params = request.params
    if not params.target:
        reporter.fatal(MISSING_TARGET)

    target = add_trailing_slash(params.target)
    spec = UploadSpec(
        source=source_folder(build_dir, params),
        target=target,
        props=request.source.props,
        regexp=request.source.regexp,
        recursive=True,
        flat=True,
        explode_archive=params.explode_archive,
    )

    reporter.step(f"Uploading file(s) to target '{target}'...")
    start = clock()
    try:
        result = client.upload(spec, params.threads)
    except ResourceError as exc:
        reporter.fatal(f"Error when uploading: {exc}")
    elapsed = clock() - start

    reporter.info(
        f"  {result.total_uploaded} uploaded, {result.total_failed} failed "
        f"in {format_elapsed(elapsed)}"
    )
    if result.total_failed > 0:
        reporter.fatal(f"{result.total_failed} files failed to upload")
    reporter.info(f"Finished uploading file(s) to target '{target}'.")

    version = latest_upload(result.uploaded) if result.uploaded else target
    return OutResponse(
        version=ResourceVersion(version=version),
        metadata=[
            MetadataField(name="total_uploaded", value=str(result.total_uploaded)),
            MetadataField(name="upload_time", value=format_elapsed(elapsed)),
        ],
    )


def main(argv: list[str] | None = None) -> None:
    """Entry point for ``/opt/resource/out``."""
    parser = argparse.ArgumentParser(prog="out")
    parser.add_argument("build_dir", help="Directory holding the build inputs.")
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    reporter = Reporter()
    try:
        request = parse_request(OutRequest, sys.stdin.read())
    except ResourceError as exc:
        reporter.fatal(str(exc))

    reporter = Reporter(request.source.log_level)
    try:
        client = ArtifactoryClient.from_source(request.source, reporter)
    except ResourceError as exc:
        reporter.fatal(str(exc))

    response = run_out(args.build_dir, request, client, reporter)
    print(response.model_dump_json())


if __name__ == "__main__":
    main()
