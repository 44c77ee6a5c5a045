"""
Configuration discovery.

Settings come from three places, in increasing priority:
- built-in defaults,
- the optional ``.go-vendorize.toml`` file in the project directory,
- command-line flags (applied by the CLI through ``Settings.override``).

The Go environment (GOPATH, GOROOT, GOOS, GOARCH) is read from the process
environment, with ``go env`` consulted for GOROOT when a toolchain is installed.
"""

from __future__ import annotations

import os
import platform
import re
import shutil
import subprocess
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib

from .errors import ConfigError

CONFIG_FILENAME = ".go-vendorize.toml"

# Newest release tag assumed when the toolchain version cannot be read.
DEFAULT_GO_MINOR = 22

_GOOS_BY_PLATFORM = {
    "linux": "linux",
    "darwin": "darwin",
    "win32": "windows",
    "cygwin": "windows",
    "freebsd": "freebsd",
    "openbsd": "openbsd",
    "netbsd": "netbsd",
    "sunos": "solaris",
    "aix": "aix",
}

_GOARCH_BY_MACHINE = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv6l": "arm",
    "armv7l": "arm",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
    "riscv64": "riscv64",
}

_MODULE_RE = re.compile(r"^\s*module\s+(\"[^\"]+\"|`[^`]+`|\S+)", re.MULTILINE)


@dataclass
class Settings:
    """
    Resolved configuration for a single run.

    Attributes:
        gopath: GOPATH entries, in the order they appear in the environment
        goroot: Root of the Go installation, None when unknown
        goos: Target operating system for file selection
        goarch: Target architecture for file selection
        go_minor: Minor version used to generate go1.N release tags
        tags: Extra build tags treated as satisfied
        exclude: Directory names pruned from traversal in addition to .git/vendor
        recursive: Whether to descend into subdirectories
        submodules: Whether the generated script registers git submodules
        verbose: Whether to report progress on stderr
    """

    gopath: list[Path] = field(default_factory=list)
    goroot: Path | None = None
    goos: str = "linux"
    goarch: str = "amd64"
    go_minor: int = DEFAULT_GO_MINOR
    tags: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    recursive: bool = True
    submodules: bool = True
    verbose: bool = False

    def override(self, **values: object) -> Settings:
        """Return a copy with every non-None value applied."""
        return replace(self, **{k: v for k, v in values.items() if v is not None})


def host_goos() -> str:
    """Map the running platform to a GOOS value."""
    for prefix, goos in _GOOS_BY_PLATFORM.items():
        if sys.platform.startswith(prefix):
            return goos
    return sys.platform


def host_goarch() -> str:
    """Map the running machine to a GOARCH value."""
    machine = platform.machine().lower()
    return _GOARCH_BY_MACHINE.get(machine, machine)


def split_gopath(value: str | None) -> list[Path]:
    """Split a GOPATH value into its non-empty entries."""
    if not value:
        return []
    return [Path(entry) for entry in value.split(os.pathsep) if entry]


def find_goroot(environ: Mapping[str, str]) -> Path | None:
    """
    Locate the Go installation root.

    Uses GOROOT from the environment when set; otherwise asks an installed
    ``go`` binary. Returns None when neither yields an existing directory.

    Args:
        environ: Environment mapping to read from

    Returns:
        Path to GOROOT, or None if it cannot be determined
    """
    goroot = environ.get("GOROOT")
    if goroot:
        path = Path(goroot)
        return path if path.is_dir() else None

    go_binary = shutil.which("go", path=environ.get("PATH"))
    if go_binary is None:
        return None

    try:
        result = subprocess.run(
            [go_binary, "env", "GOROOT"],
            capture_output=True,
            text=True,
            check=False,
            timeout=30,
        )
    except (OSError, subprocess.SubprocessError) as e:
        print(f"Warning: could not run 'go env GOROOT': {e}", file=sys.stderr)
        return None

    output = result.stdout.strip()
    if result.returncode != 0 or not output:
        return None
    path = Path(output)
    return path if path.is_dir() else None


def read_go_minor(goroot: Path | None) -> int:
    """Read the toolchain minor version from $GOROOT/VERSION."""
    if goroot is None:
        return DEFAULT_GO_MINOR
    version_file = goroot / "VERSION"
    try:
        first_line = version_file.read_text(encoding="utf-8").splitlines()[0]
    except (OSError, IndexError):
        return DEFAULT_GO_MINOR
    match = re.match(r"go1\.(\d+)", first_line.strip())
    return int(match.group(1)) if match else DEFAULT_GO_MINOR


def find_go_module(start_path: Path) -> str | None:
    """
    Find the module path declared by the nearest go.mod.

    Walks up from start_path until a directory containing go.mod is found.

    Args:
        start_path: Directory to start the search from

    Returns:
        The declared module path, or None if no go.mod declares one
    """
    current = Path(start_path).resolve()

    for directory in (current, *current.parents):
        go_mod = directory / "go.mod"
        if not go_mod.is_file():
            continue
        try:
            content = go_mod.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None
        match = _MODULE_RE.search(content)
        if match is None:
            return None
        module = match.group(1).strip("\"`")
        if directory == current:
            return module
        relative = current.relative_to(directory).as_posix()
        return f"{module}/{relative}"

    return None


def determine_import_prefix(directory: Path, gopath: list[Path]) -> str:
    """
    Compute the project's own import path.

    The first GOPATH entry whose src/ tree contains the directory wins. When
    none does, the nearest go.mod module path is used. An undeterminable prefix
    is the empty string; that is not an error.

    Args:
        directory: Absolute project directory
        gopath: GOPATH entries

    Returns:
        The import path prefix, or "" when it cannot be determined
    """
    for entry in gopath:
        src_root = Path(os.path.abspath(entry)) / "src"
        if directory != src_root and directory.is_relative_to(src_root):
            return directory.relative_to(src_root).as_posix()

    return find_go_module(directory) or ""


def load_project_config(directory: Path) -> dict[str, object]:
    """
    Read the optional per-project configuration file.

    Args:
        directory: Project directory that may contain .go-vendorize.toml

    Returns:
        Validated settings from the file; empty if the file does not exist

    Raises:
        ConfigError: If the file is unreadable, malformed, or has bad values
    """
    config_path = directory / CONFIG_FILENAME
    if not config_path.is_file():
        return {}

    try:
        data = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"cannot read {config_path}: {e}") from e

    values: dict[str, object] = {}
    for key, value in data.items():
        if key in ("recursive", "submodules"):
            if not isinstance(value, bool):
                raise ConfigError(f"{config_path}: '{key}' must be a boolean")
            values[key] = value
        elif key in ("exclude", "tags"):
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"{config_path}: '{key}' must be a list of strings")
            values[key] = list(value)
        else:
            raise ConfigError(f"{config_path}: unknown setting '{key}'")
    return values


def load_settings(directory: Path, environ: Mapping[str, str] | None = None) -> Settings:
    """
    Build the settings for a run from the environment and project file.

    Args:
        directory: Project directory (used to locate .go-vendorize.toml)
        environ: Environment mapping (default: os.environ)

    Returns:
        Settings with environment and project-file values applied
    """
    if environ is None:
        environ = os.environ

    goroot = find_goroot(environ)
    settings = Settings(
        gopath=split_gopath(environ.get("GOPATH")),
        goroot=goroot,
        goos=environ.get("GOOS") or host_goos(),
        goarch=environ.get("GOARCH") or host_goarch(),
        go_minor=read_go_minor(goroot),
    )
    return settings.override(**load_project_config(directory))
