"""
Go source analysis functionality.

This module provides the GoSourceAnalyzer class which is responsible for:
- Selecting the Go files of a directory that take part in the build
- Extracting the package clause and import declarations from each file header
- Assembling the per-directory GoPackage with its regular and test imports
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from .constraints import BuildContext, ConstraintSyntaxError
from .errors import MultiplePackagesError, NoSourceFilesError, SourceParseError
from .types import GoImport, GoPackage

_TOKEN_PATTERNS = [
    ("space", r"[ \t\r\n]+"),
    ("comment", r"//[^\n]*|/\*.*?\*/"),
    ("string", r'"(?:[^"\\\n]|\\.)*"|`[^`]*`'),
    ("ident", r"[^\W\d]\w*"),
    ("punct", r"[().;]"),
]
_TOKEN_RE = re.compile(
    "|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_PATTERNS),
    re.DOTALL,
)

_ESCAPES = {
    "\\": "\\",
    '"': '"',
    "'": "'",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
}


@dataclass
class _Token:
    kind: str
    value: str
    line: int


@dataclass
class _FileHeader:
    package: str
    imports: list[GoImport]


class GoSourceAnalyzer:
    """
    Analyzes Go files to extract package names and import paths.

    Only the file header is read: the package clause and the import
    declarations that follow it. Parsing stops at the first other top-level
    declaration, so the body of a file is never tokenized.

    Attributes:
        context: Build target used to decide which files are selected
    """

    def __init__(self, context: BuildContext | None = None) -> None:
        """
        Initialize the analyzer.

        Args:
            context: Build target (default: linux/amd64 with no extra tags)
        """
        self.context = context or BuildContext()

    def find_go_files(self, directory: Path) -> list[Path]:
        """
        List the candidate Go files of a single directory, in name order.

        Files whose names start with "_" or "." are ignored, as are files whose
        name carries a GOOS/GOARCH suffix that does not match the target.

        Args:
            directory: Directory to list (not recursed into)

        Returns:
            Sorted list of .go file paths
        """
        go_files = []
        for path in sorted(directory.iterdir()):
            name = path.name
            if not name.endswith(".go") or name.startswith(("_", ".")):
                continue
            if not path.is_file():
                continue
            if not self.context.match_filename(name):
                continue
            go_files.append(path)
        return go_files

    def should_build(self, file_path: Path, content: str) -> bool:
        """
        Evaluate the comment build constraints at the top of a file.

        Args:
            file_path: Path of the file (used in error messages)
            content: The file's text

        Returns:
            True if the file is part of the build for the current context

        Raises:
            SourceParseError: If a //go:build expression is malformed
        """
        go_build: str | None = None
        go_build_line = 0
        plus_build: list[str] = []

        in_block = False
        for line_number, raw_line in enumerate(content.splitlines(), start=1):
            line = raw_line.strip()
            if in_block:
                if "*/" in line:
                    in_block = False
                continue
            if not line:
                continue
            if line.startswith("/*"):
                in_block = "*/" not in line[2:]
                continue
            if not line.startswith("//"):
                break
            if line.startswith("//go:build") and go_build is None:
                go_build = line[len("//go:build") :].strip()
                go_build_line = line_number
            elif re.match(r"//\s*\+build(\s|$)", line):
                plus_build.append(line.split("+build", 1)[1].strip())

        try:
            return self.context.match_constraints(go_build, plus_build)
        except ConstraintSyntaxError as e:
            raise SourceParseError(file_path, go_build_line, str(e)) from e

    def extract_imports(self, file_path: Path, content: str | None = None) -> tuple[str, list[GoImport]]:
        """
        Extract the package name and all import specs from a Go file.

        Args:
            file_path: Path to the Go file to analyze
            content: The file's text (read from disk if omitted)

        Returns:
            Tuple of (package name, imports in source order)

        Raises:
            SourceParseError: If the file has no package clause or a malformed import
        """
        if content is None:
            content = _read_source(file_path)
        header = _HeaderParser(file_path, content).parse()
        return header.package, header.imports

    def import_dir(self, directory: Path) -> GoPackage:
        """
        Classify a directory as a Go package and collect its imports.

        Args:
            directory: Directory to analyze

        Returns:
            GoPackage describing the directory

        Raises:
            NoSourceFilesError: If no Go file in the directory is selected for the build
            MultiplePackagesError: If the selected files declare different packages
            SourceParseError: If a selected file cannot be parsed
        """
        package = GoPackage(directory=directory, name="")
        names: list[str] = []
        imports: set[str] = set()
        test_imports: set[str] = set()
        xtest_imports: set[str] = set()
        xtest_name = ""

        for file_path in self.find_go_files(directory):
            content = _read_source(file_path)
            if not self.should_build(file_path, content):
                continue

            name, file_imports = self.extract_imports(file_path, content)
            paths = {imp.path for imp in file_imports}
            is_test = file_path.name.endswith("_test.go")

            if is_test and name.endswith("_test"):
                base_name = name.removesuffix("_test")
                if xtest_name and base_name != xtest_name:
                    raise MultiplePackagesError(directory, [f"{xtest_name}_test", name])
                package.xtest_go_files.append(file_path)
                xtest_name = base_name
                xtest_imports.update(paths)
                continue

            if name not in names:
                names.append(name)
            if is_test:
                package.test_go_files.append(file_path)
                test_imports.update(paths)
            else:
                package.go_files.append(file_path)
                imports.update(paths)

        if not (package.go_files or package.test_go_files or package.xtest_go_files):
            raise NoSourceFilesError(directory)
        if xtest_name and names and xtest_name not in names:
            names.append(f"{xtest_name}_test")
        if len(names) > 1:
            raise MultiplePackagesError(directory, names)

        package.name = names[0] if names else xtest_name
        package.imports = sorted(imports)
        package.test_imports = sorted(test_imports)
        package.xtest_imports = sorted(xtest_imports)
        return package


def _read_source(file_path: Path) -> str:
    try:
        # A leading byte-order mark is allowed and dropped.
        return file_path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise SourceParseError(file_path, 0, f"invalid UTF-8: {e}") from e


def _unquote(token: _Token, file_path: Path) -> str:
    """Decode a Go string literal token into its value."""
    literal = token.value
    if literal.startswith("`"):
        return literal[1:-1]

    body = literal[1:-1]
    if "\\" not in body:
        return body

    result = []
    i = 0
    while i < len(body):
        char = body[i]
        if char != "\\":
            result.append(char)
            i += 1
            continue
        escaped = body[i + 1]
        if escaped in _ESCAPES:
            result.append(_ESCAPES[escaped])
            i += 2
        elif escaped in ("x", "u", "U"):
            width = {"x": 2, "u": 4, "U": 8}[escaped]
            digits = body[i + 2 : i + 2 + width]
            if len(digits) != width or not all(c in "0123456789abcdefABCDEF" for c in digits):
                raise SourceParseError(file_path, token.line, f"invalid escape in {literal}")
            result.append(chr(int(digits, 16)))
            i += 2 + width
        elif escaped in "01234567":
            digits = body[i + 1 : i + 4]
            if len(digits) != 3 or not all(c in "01234567" for c in digits) or int(digits, 8) > 255:
                raise SourceParseError(file_path, token.line, f"invalid escape in {literal}")
            result.append(chr(int(digits, 8)))
            i += 4
        else:
            raise SourceParseError(file_path, token.line, f"unknown escape sequence in {literal}")
    return "".join(result)


class _HeaderParser:
    """Parses the package clause and import declarations of one Go file."""

    def __init__(self, file_path: Path, content: str) -> None:
        self.file_path = file_path
        self.tokens = self._tokenize(content)
        self.current: _Token | None = next(self.tokens, None)

    def _tokenize(self, content: str) -> Iterator[_Token]:
        pos = 0
        line = 1
        while pos < len(content):
            match = _TOKEN_RE.match(content, pos)
            if match is None:
                if content.startswith("/*", pos):
                    raise SourceParseError(self.file_path, line, "comment not terminated")
                yield _Token("other", content[pos], line)
                return
            kind = match.lastgroup
            value = match.group()
            if kind not in ("space", "comment"):
                yield _Token(kind, value, line)
            line += value.count("\n")
            pos = match.end()

    def _advance(self) -> _Token | None:
        token = self.current
        self.current = next(self.tokens, None)
        return token

    def _error(self, message: str) -> SourceParseError:
        line = self.current.line if self.current else 0
        return SourceParseError(self.file_path, line, message)

    def _skip_semicolons(self) -> None:
        while self.current is not None and self.current.value == ";":
            self._advance()

    def parse(self) -> _FileHeader:
        if self.current is None or self.current.value != "package":
            raise self._error("expected 'package' clause")
        self._advance()
        if self.current is None or self.current.kind != "ident":
            raise self._error("expected package name")
        package = self._advance().value
        self._skip_semicolons()

        imports: list[GoImport] = []
        while self.current is not None and self.current.value == "import":
            self._advance()
            if self.current is not None and self.current.value == "(":
                self._advance()
                self._skip_semicolons()
                while self.current is not None and self.current.value != ")":
                    imports.append(self._import_spec())
                    self._skip_semicolons()
                if self.current is None:
                    raise self._error("unterminated import block")
                self._advance()
            else:
                imports.append(self._import_spec())
            self._skip_semicolons()

        return _FileHeader(package=package, imports=imports)

    def _import_spec(self) -> GoImport:
        alias = None
        if self.current is not None and (self.current.kind == "ident" or self.current.value == "."):
            alias = self._advance().value
        if self.current is None or self.current.kind != "string":
            raise self._error("expected import path string")
        token = self._advance()
        return GoImport(
            path=_unquote(token, self.file_path),
            alias=alias,
            file_path=self.file_path,
            line_number=token.line,
        )
