"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

import go_vendorize.config


@pytest.fixture(autouse=True)
def isolate_go_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Keep the developer's Go installation out of the tests.

    GOPATH, GOROOT, GOOS and GOARCH are removed from the environment and no
    'go' binary is ever found, so standard library detection falls back to
    the naming convention unless a test sets GOROOT itself.
    """
    for name in ("GOPATH", "GOROOT", "GOOS", "GOARCH", "GOFLAGS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(go_vendorize.config.shutil, "which", lambda *args, **kwargs: None)


@pytest.fixture
def write_go_file() -> Callable[..., Path]:
    """
    Return a helper that writes a Go source file.

    The helper takes the target path, the package name and the imports, and
    creates parent directories as needed.
    """

    def write(path: Path, package: str = "main", imports: list[str] | None = None, header: str = "") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = [header] if header else []
        lines.append(f"package {package}")
        lines.append("")
        if imports:
            lines.append("import (")
            lines.extend(f'\t"{imp}"' for imp in imports)
            lines.append(")")
            lines.append("")
        lines.append("func unused() {}")
        path.write_text("\n".join(lines) + "\n")
        return path

    return write


@pytest.fixture
def gopath_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, write_go_file) -> Path:
    """
    Create the example.com/proj project inside a GOPATH.

    The main package imports an internal package, a standard library package
    and one external dependency.
    """
    gopath = tmp_path / "gopath"
    project = gopath / "src" / "example.com" / "proj"
    write_go_file(
        project / "main.go",
        imports=["example.com/proj/internal/foo", "fmt", "github.com/x/y"],
    )
    write_go_file(project / "internal" / "foo" / "foo.go", package="foo", imports=["strings"])
    monkeypatch.setenv("GOPATH", str(gopath))
    return project
