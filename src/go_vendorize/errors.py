"""
Exception hierarchy for the package.

Every fatal condition is a subclass of VendorizeError so the command-line
entry point can report it with a single diagnostic line. NoSourceFilesError
is the one non-fatal member: it signals that a directory holds no Go sources
and should simply be skipped.
"""

from __future__ import annotations

from pathlib import Path


class VendorizeError(Exception):
    """Base class for all errors raised by go-vendorize."""


class FileSystemError(VendorizeError):
    """A path is missing or unreadable during traversal or setup."""


class ConfigError(VendorizeError):
    """The project configuration file could not be read."""


class SourceParseError(VendorizeError):
    """A Go source file header could not be parsed."""

    def __init__(self, file_path: Path, line_number: int, message: str) -> None:
        self.file_path = file_path
        self.line_number = line_number
        super().__init__(f"{file_path}:{line_number}: {message}")


class PackageResolutionError(VendorizeError):
    """An import path cannot be located or classified as a package."""


class MultiplePackagesError(PackageResolutionError):
    """A directory mixes source files from more than one package."""

    def __init__(self, directory: Path, names: list[str]) -> None:
        self.directory = directory
        self.names = names
        super().__init__(f"found packages {', '.join(names)} in {directory}")


class NoSourceFilesError(VendorizeError):
    """A directory contains no buildable Go source files."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        super().__init__(f"no buildable Go source files in {directory}")
