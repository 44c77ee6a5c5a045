"""
Import path resolution.

Decides, for each path imported by a package, whether it is internal to the
project, part of the Go standard library, or an external dependency that has
to be vendored.
"""

from __future__ import annotations

import posixpath
from enum import Enum
from pathlib import Path

from .errors import PackageResolutionError
from .types import ImportPath, ProjectContext

# Characters Go rejects in import paths, besides control characters and spaces.
_INVALID_CHARS = set("!\"#$%&'()*,:;<=>?[\\]^`{|}\ufffd")


class ImportKind(Enum):
    """
    How an import path relates to the project.

    Attributes:
        SKIP: Empty path or the cgo pseudo-package; contributes nothing
        INTERNAL: Part of the project itself
        STDLIB: Part of the Go standard library
        EXTERNAL: A dependency that must be vendored
    """

    SKIP = "skip"
    INTERNAL = "internal"
    STDLIB = "stdlib"
    EXTERNAL = "external"


def is_local_import(path: ImportPath) -> bool:
    """Check for a relative import such as "./x" or "../x"."""
    return path in (".", "..") or path.startswith(("./", "../"))


def validate_import_path(path: ImportPath) -> None:
    """
    Reject import paths the Go toolchain would refuse.

    Raises:
        PackageResolutionError: If the path is malformed
    """
    if path.startswith("/"):
        raise PackageResolutionError(f"invalid import path {path!r}: absolute path")
    for element in path.split("/"):
        if element in ("", ".", ".."):
            raise PackageResolutionError(f"invalid import path {path!r}: bad path element")
    for char in path:
        if char in _INVALID_CHARS or char.isspace() or not char.isprintable():
            raise PackageResolutionError(f"invalid import path {path!r}: invalid character {char!r}")


def is_standard_import_path(path: ImportPath) -> bool:
    """Apply the naming convention: standard packages have no dot in their first element."""
    return "." not in path.split("/", 1)[0]


class ImportResolver:
    """
    Classifies import paths for a single project.

    When GOROOT is known, standard packages are those present under
    ``$GOROOT/src``; a dot-less path found neither there nor under any
    ``$GOPATH/src`` cannot be located and is an error. Without GOROOT the
    naming convention alone decides.

    Attributes:
        project: The project being vendored
        goroot: Go installation root, None when unknown
        gopath: GOPATH entries searched for dot-less non-standard packages
    """

    def __init__(
        self,
        project: ProjectContext,
        goroot: Path | None = None,
        gopath: list[Path] | None = None,
    ) -> None:
        self.project = project
        self.goroot = goroot
        self.gopath = gopath or []
        self._stdlib_cache: dict[ImportPath, bool] = {}

    def is_stdlib(self, path: ImportPath) -> bool:
        """
        Check whether an import path belongs to the standard library.

        Results are cached per resolver.
        """
        cached = self._stdlib_cache.get(path)
        if cached is not None:
            return cached

        if self.goroot is None:
            result = is_standard_import_path(path)
        else:
            result = (self.goroot / "src" / path).is_dir()
        self._stdlib_cache[path] = result
        return result

    def _in_gopath(self, path: ImportPath) -> bool:
        return any((entry / "src" / path).is_dir() for entry in self.gopath)

    def resolve_local(self, path: ImportPath, src_dir: Path) -> ImportKind:
        """
        Resolve a relative import against the importing directory.

        Raises:
            PackageResolutionError: If the target is missing or outside the project
        """
        target = Path(posixpath.normpath((src_dir / path).as_posix()))
        if not target.is_dir():
            raise PackageResolutionError(f"cannot find package {path!r} in {target}")
        if target.resolve().is_relative_to(self.project.directory.resolve()):
            return ImportKind.INTERNAL
        raise PackageResolutionError(
            f"local import {path!r} in {src_dir} points outside the project: {target}"
        )

    def classify(self, path: ImportPath, src_dir: Path) -> ImportKind:
        """
        Classify a single import path.

        Args:
            path: The import path as written in the source
            src_dir: Directory of the importing package

        Returns:
            The ImportKind of the path

        Raises:
            PackageResolutionError: If the import cannot be located or is malformed
        """
        if path == "" or path == "C":
            return ImportKind.SKIP
        if is_local_import(path):
            return self.resolve_local(path, src_dir)

        if self.project.is_internal(path):
            return ImportKind.INTERNAL

        validate_import_path(path)
        if self.is_stdlib(path):
            return ImportKind.STDLIB
        if self.goroot is not None and is_standard_import_path(path) and not self._in_gopath(path):
            searched = [str(self.goroot / "src" / path)]
            searched.extend(str(entry / "src" / path) for entry in self.gopath)
            raise PackageResolutionError(
                f"cannot find package {path!r} imported from {src_dir} (searched {', '.join(searched)})"
            )
        return ImportKind.EXTERNAL

    def external_imports(self, imports: list[ImportPath], src_dir: Path) -> list[ImportPath]:
        """
        Filter a package's imports down to the external ones, keeping order.

        Raises:
            PackageResolutionError: On the first import that cannot be resolved
        """
        return [path for path in imports if self.classify(path, src_dir) is ImportKind.EXTERNAL]
