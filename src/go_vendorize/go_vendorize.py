"""
Main entry point for the go-vendorize package.

This module provides the command-line interface for the package.
It can be invoked via:
- The `go-vendorize` command (after installation)
- `python -m go_vendorize`
- Direct import and call to main()

The generated script is written to standard output, ready to be piped into
bash. Nothing is written when the project has no external imports.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from .analyzer import GoSourceAnalyzer
from .collector import ImportCollector
from .config import Settings, determine_import_prefix, load_settings
from .constraints import BuildContext
from .errors import VendorizeError
from .renderer import ScriptRenderer
from .resolver import ImportResolver
from .types import ImportPath, ProjectContext, RenderContext


def analyze_project(directory: Path, settings: Settings) -> tuple[ProjectContext, list[ImportPath]]:
    """
    Collect the external imports of a project.

    Args:
        directory: Absolute project directory
        settings: Resolved settings for the run

    Returns:
        Tuple of (project context, external import paths in discovery order)

    Raises:
        VendorizeError: On the first fatal error
    """
    project = ProjectContext(
        directory=directory,
        import_prefix=determine_import_prefix(directory, settings.gopath),
    )
    if settings.verbose:
        print(f"Project import path: {project.import_prefix or '(unknown)'}", file=sys.stderr)

    analyzer = GoSourceAnalyzer(
        BuildContext(
            goos=settings.goos,
            goarch=settings.goarch,
            tags=settings.tags,
            go_minor=settings.go_minor,
        )
    )
    resolver = ImportResolver(project, goroot=settings.goroot, gopath=settings.gopath)
    collector = ImportCollector(analyzer, resolver, exclude=settings.exclude, verbose=settings.verbose)
    return project, collector.collect(directory, recursive=settings.recursive)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="go-vendorize",
        description="Generate a shell script that vendors the external dependencies of a Go project",
    )
    parser.add_argument(
        "-d",
        "--directory",
        default="./",
        help="Directory to analyse dependencies and download to (default: ./)",
    )
    parser.add_argument(
        "--recursive",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Analyse the project recursively (default: true)",
    )
    parser.add_argument(
        "--submodules",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Add dependencies as git submodules (default: true)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        metavar="NAME",
        help="Additional directory name to skip, besides .git and vendor. Can be specified multiple times.",
    )
    parser.add_argument(
        "--tags",
        help="Comma-separated list of extra build tags considered satisfied",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Report progress on stderr",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the vendoring script generator.

    Parses command-line arguments, collects the external imports and writes
    the vendor script to standard output.

    Returns:
        Exit code (0 for success or nothing to do, 1 for errors)
    """
    args = build_parser().parse_args(argv)

    try:
        directory = Path(os.path.abspath(args.directory))
        settings = load_settings(directory)
        settings = settings.override(
            recursive=args.recursive,
            submodules=args.submodules,
            verbose=args.verbose or None,
            exclude=settings.exclude + (args.exclude or []),
            tags=settings.tags + [tag.strip() for tag in (args.tags or "").split(",") if tag.strip()],
        )

        project, packages = analyze_project(directory, settings)
        if not packages:
            return 0

        ScriptRenderer(sys.stdout).render(
            RenderContext(
                directory=project.directory,
                packages=tuple(packages),
                add_submodules=settings.submodules,
                import_prefix=project.import_prefix,
            )
        )
        return 0

    except (VendorizeError, OSError) as e:
        message = " ".join(str(e).split())
        print(f"Internal error occurred: {message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
