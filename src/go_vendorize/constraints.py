"""
Build constraint evaluation.

Decides whether a Go source file takes part in the build for a given target,
based on its file name (``name_GOOS_GOARCH.go``) and on ``//go:build`` or
legacy ``// +build`` comment lines.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

KNOWN_OS = frozenset(
    {
        "aix",
        "android",
        "darwin",
        "dragonfly",
        "freebsd",
        "hurd",
        "illumos",
        "ios",
        "js",
        "linux",
        "nacl",
        "netbsd",
        "openbsd",
        "plan9",
        "solaris",
        "wasip1",
        "windows",
        "zos",
    }
)

UNIX_OS = frozenset(
    {
        "aix",
        "android",
        "darwin",
        "dragonfly",
        "freebsd",
        "hurd",
        "illumos",
        "ios",
        "linux",
        "netbsd",
        "openbsd",
        "solaris",
    }
)

KNOWN_ARCH = frozenset(
    {
        "386",
        "amd64",
        "amd64p32",
        "arm",
        "armbe",
        "arm64",
        "arm64be",
        "loong64",
        "mips",
        "mipsle",
        "mips64",
        "mips64le",
        "mips64p32",
        "mips64p32le",
        "ppc",
        "ppc64",
        "ppc64le",
        "riscv",
        "riscv64",
        "s390",
        "s390x",
        "sparc",
        "sparc64",
        "wasm",
    }
)

_TOKEN_RE = re.compile(r"\s*(\(|\)|!|&&|\|\||[\w.]+)")


class ConstraintSyntaxError(ValueError):
    """A //go:build expression could not be parsed."""


@dataclass
class BuildContext:
    """
    Target description used to select source files.

    Attributes:
        goos: Target operating system
        goarch: Target architecture
        tags: Extra satisfied build tags
        go_minor: Highest go1.N release tag that is satisfied
    """

    goos: str = "linux"
    goarch: str = "amd64"
    tags: list[str] = field(default_factory=list)
    go_minor: int = 22

    def match_tag(self, tag: str) -> bool:
        """Check whether a single build tag is satisfied."""
        if tag in self.tags:
            return True
        if tag in (self.goos, self.goarch, "gc", "cgo"):
            return True
        if tag == "unix" and self.goos in UNIX_OS:
            return True
        if tag == "linux" and self.goos == "android":
            return True
        if tag == "solaris" and self.goos == "illumos":
            return True
        if tag == "darwin" and self.goos == "ios":
            return True
        match = re.fullmatch(r"go1\.(\d+)", tag)
        if match:
            return int(match.group(1)) <= self.go_minor
        return False

    def match_filename(self, filename: str) -> bool:
        """
        Apply the implicit GOOS/GOARCH constraint carried by a file name.

        The part before the first underscore never counts, so "linux.go"
        builds everywhere while "x_linux.go" builds only on linux.
        """
        stem = filename.split(".", 1)[0]
        index = stem.find("_")
        if index < 0:
            return True
        parts = stem[index:].split("_")
        if parts and parts[-1] == "test":
            parts = parts[:-1]

        if len(parts) >= 2 and parts[-2] in KNOWN_OS and parts[-1] in KNOWN_ARCH:
            return self.match_tag(parts[-2]) and self.match_tag(parts[-1])
        if parts and (parts[-1] in KNOWN_OS or parts[-1] in KNOWN_ARCH):
            return self.match_tag(parts[-1])
        return True

    def eval_expression(self, expression: str) -> bool:
        """
        Evaluate a //go:build expression.

        Raises:
            ConstraintSyntaxError: If the expression is malformed
        """
        parser = _ExpressionParser(expression, self.match_tag)
        return parser.parse()

    def eval_plus_build(self, line: str) -> bool:
        """Evaluate one legacy "+build" line: space-separated OR of comma-separated ANDs."""
        for option in line.split():
            satisfied = True
            for term in option.split(","):
                negated = term.startswith("!")
                name = term.lstrip("!")
                if not name or self.match_tag(name) == negated:
                    satisfied = False
                    break
            if satisfied:
                return True
        return False

    def match_constraints(self, go_build: str | None, plus_build: list[str]) -> bool:
        """
        Decide whether a file's comment constraints are satisfied.

        A //go:build line takes precedence; +build lines only apply without one,
        and all of them must hold.
        """
        if go_build is not None:
            return self.eval_expression(go_build)
        return all(self.eval_plus_build(line) for line in plus_build)


class _ExpressionParser:
    """Recursive-descent parser for //go:build expressions."""

    def __init__(self, text: str, match_tag) -> None:
        self.text = text
        self.match_tag = match_tag
        self.tokens = self._tokenize(text)
        self.pos = 0

    def _tokenize(self, text: str) -> list[str]:
        tokens = []
        pos = 0
        text = text.rstrip()
        while pos < len(text):
            match = _TOKEN_RE.match(text, pos)
            if match is None:
                raise ConstraintSyntaxError(f"unexpected character in build constraint: {text!r}")
            tokens.append(match.group(1))
            pos = match.end()
        return tokens

    def _peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> str:
        token = self._peek()
        if token is None:
            raise ConstraintSyntaxError(f"unexpected end of build constraint: {self.text!r}")
        self.pos += 1
        return token

    def parse(self) -> bool:
        value = self._or()
        if self._peek() is not None:
            raise ConstraintSyntaxError(f"unexpected token {self._peek()!r} in {self.text!r}")
        return value

    def _or(self) -> bool:
        value = self._and()
        while self._peek() == "||":
            self._next()
            # Both operands are always parsed.
            right = self._and()
            value = value or right
        return value

    def _and(self) -> bool:
        value = self._not()
        while self._peek() == "&&":
            self._next()
            right = self._not()
            value = value and right
        return value

    def _not(self) -> bool:
        if self._peek() == "!":
            self._next()
            return not self._not()
        return self._atom()

    def _atom(self) -> bool:
        token = self._next()
        if token == "(":
            value = self._or()
            if self._next() != ")":
                raise ConstraintSyntaxError(f"missing ')' in {self.text!r}")
            return value
        if token in (")", "&&", "||"):
            raise ConstraintSyntaxError(f"unexpected token {token!r} in {self.text!r}")
        return self.match_tag(token)
