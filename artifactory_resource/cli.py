"""CLI entry point for artifactory-resource."""

from __future__ import annotations

import argparse
from importlib.metadata import version as pkg_version

from artifactory_resource import check, out

__version__ = pkg_version("artifactory-resource")


def cmd_check(args: argparse.Namespace) -> None:
    """Report available versions (reads the request from stdin)."""
    check.main()


def cmd_out(args: argparse.Namespace) -> None:
    """Upload files from a build directory (reads the request from stdin)."""
    out.main([args.build_dir])


def cli(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="artifactory-resource",
        description="Concourse resource for versioned files in Artifactory.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser(
        "check", help="Report versions found in the repository."
    )
    check_parser.set_defaults(func=cmd_check)

    out_parser = subparsers.add_parser(
        "out", help="Upload files from a build directory."
    )
    out_parser.add_argument("build_dir", help="Directory holding the build inputs.")
    out_parser.set_defaults(func=cmd_out)

    args = parser.parse_args(argv)
    args.func(args)
