"""
Type definitions for the package.

This module contains the core data structures used throughout the package
for representing Go imports, analysed packages and the per-run contexts
handed from the collector to the script renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

ImportPath = str


@dataclass
class GoImport:
    """
    Information about a single import spec found in a Go source file.

    Attributes:
        path: The unquoted import path (e.g., "fmt", "github.com/x/y")
        alias: Package name given to the import, "." for dot imports,
            "_" for blank imports, None when absent
        file_path: Path to the file containing this import
        line_number: Line number where the import path appears
    """

    path: ImportPath
    alias: str | None = None
    file_path: Path | None = None
    line_number: int = 0


@dataclass
class GoPackage:
    """
    A directory successfully classified as a Go package.

    Import lists are sorted and free of duplicates, mirroring what the Go
    toolchain reports for a package.

    Attributes:
        directory: Directory holding the package sources
        name: Package name shared by the non-external-test files
        go_files: Non-test source files that passed file selection
        test_go_files: _test.go files belonging to the package itself
        xtest_go_files: _test.go files of the external "<name>_test" package
        imports: Paths imported by go_files
        test_imports: Paths imported by test_go_files
        xtest_imports: Paths imported by xtest_go_files
    """

    directory: Path
    name: str
    go_files: list[Path] = field(default_factory=list)
    test_go_files: list[Path] = field(default_factory=list)
    xtest_go_files: list[Path] = field(default_factory=list)
    imports: list[ImportPath] = field(default_factory=list)
    test_imports: list[ImportPath] = field(default_factory=list)
    xtest_imports: list[ImportPath] = field(default_factory=list)

    def all_imports(self) -> list[ImportPath]:
        """Return every referenced path, package imports first, then test-only ones."""
        ordered: list[ImportPath] = []
        seen: set[ImportPath] = set()
        for group in (self.imports, self.test_imports, self.xtest_imports):
            for path in group:
                if path not in seen:
                    seen.add(path)
                    ordered.append(path)
        return ordered


@dataclass(frozen=True)
class ProjectContext:
    """
    Immutable per-run description of the project being vendored.

    Attributes:
        directory: Absolute path of the project directory
        import_prefix: The project's own import path, "" when undeterminable
    """

    directory: Path
    import_prefix: ImportPath = ""

    def is_internal(self, path: ImportPath) -> bool:
        """Check whether an import path lies under the project's own prefix."""
        if not self.import_prefix:
            return False
        return path == self.import_prefix or path.startswith(self.import_prefix + "/")


@dataclass(frozen=True)
class RenderContext:
    """
    Everything the script renderer consumes, gathered once per run.

    Attributes:
        directory: Absolute project directory the script vendors into
        packages: External import paths, in discovery order
        add_submodules: Whether to emit git submodule registration
        import_prefix: The project's own import path
    """

    directory: Path
    packages: tuple[ImportPath, ...]
    add_submodules: bool = True
    import_prefix: ImportPath = ""
