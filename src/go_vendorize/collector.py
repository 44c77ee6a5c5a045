"""
External import collection.

This module provides the ImportCollector class which walks a project tree,
classifies each directory as a Go package, and gathers the import paths
that point outside the project and outside the standard library.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator
from pathlib import Path

from .analyzer import GoSourceAnalyzer
from .errors import FileSystemError, NoSourceFilesError
from .resolver import ImportResolver
from .types import ImportPath

# Directory names whose subtrees are never visited.
PRUNED_DIRECTORIES = frozenset({".git", "vendor"})


class ImportCollector:
    """
    Collects external import paths from a directory tree.

    The walk is a fold: collect_directory() returns the external imports of one
    directory and collect() concatenates them, dropping repeats while keeping
    the order of first discovery.

    Attributes:
        analyzer: GoSourceAnalyzer used to classify directories
        resolver: ImportResolver used to classify import paths
        exclude: Names of directories pruned from the walk
        verbose: Whether to report skipped directories on stderr
    """

    def __init__(
        self,
        analyzer: GoSourceAnalyzer,
        resolver: ImportResolver,
        exclude: list[str] | None = None,
        verbose: bool = False,
    ) -> None:
        """
        Initialize the collector.

        Args:
            analyzer: Analyzer for Go source directories
            resolver: Resolver for import paths
            exclude: Additional directory names to prune (default: only .git and vendor)
            verbose: Report progress on stderr
        """
        self.analyzer = analyzer
        self.resolver = resolver
        self.exclude = PRUNED_DIRECTORIES | set(exclude or [])
        self.verbose = verbose

    def is_pruned(self, path: Path) -> bool:
        """Check whether a directory's subtree must not be visited."""
        return path.name in self.exclude

    def iter_directories(self, root: Path, recursive: bool = True) -> Iterator[Path]:
        """
        Yield the directories to visit, top-down in lexical order.

        The root is always visited; pruning applies to the directories below it.

        Args:
            root: Root of the walk
            recursive: Whether to descend below the root

        Raises:
            FileSystemError: If the root is missing or any directory cannot be read
        """
        if not root.exists():
            raise FileSystemError(f"directory not found: {root}")
        if not root.is_dir():
            raise FileSystemError(f"not a directory: {root}")

        if not recursive:
            yield root
            return

        def on_error(error: OSError) -> None:
            raise FileSystemError(f"cannot read {error.filename}: {error.strerror}") from error

        for dirpath, dirnames, _ in os.walk(root, onerror=on_error):
            current = Path(dirpath)
            kept = []
            for name in sorted(dirnames):
                if self.is_pruned(current / name):
                    self._log(f"Pruned {current / name}")
                else:
                    kept.append(name)
            dirnames[:] = kept
            yield current

    def collect_directory(self, directory: Path) -> list[ImportPath]:
        """
        Return the external imports of a single directory.

        A directory without Go sources contributes nothing.

        Raises:
            FileSystemError: If the directory cannot be read
            PackageResolutionError: If an import cannot be resolved
            SourceParseError: If a Go file cannot be parsed
        """
        try:
            package = self.analyzer.import_dir(directory)
        except NoSourceFilesError:
            return []
        except OSError as e:
            raise FileSystemError(f"cannot read {directory}: {e}") from e

        external = self.resolver.external_imports(package.all_imports(), directory)
        if external:
            self._log(f"{directory}: {', '.join(external)}")
        return external

    def collect(self, root: Path, recursive: bool = True) -> list[ImportPath]:
        """
        Collect the external imports of a whole tree.

        Args:
            root: Root directory to analyse
            recursive: Whether to descend into subdirectories

        Returns:
            External import paths in discovery order, without duplicates

        Raises:
            VendorizeError: On the first fatal error; nothing is returned
        """
        ordered: list[ImportPath] = []
        seen: set[ImportPath] = set()
        for directory in self.iter_directories(root, recursive):
            for path in self.collect_directory(directory):
                if path not in seen:
                    seen.add(path)
                    ordered.append(path)
        self._log(f"Found {len(ordered)} external imports")
        return ordered

    def _log(self, message: str) -> None:
        if self.verbose:
            print(message, file=sys.stderr)
