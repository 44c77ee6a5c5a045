"""
Shell script statement model.

A script is an ordered sequence of typed statements rather than one large
template string. Each statement renders itself to bash text at a given
indentation, so the structure of a generated script can be inspected
independently of its formatting.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field

INDENT = "  "


def quote(value: object) -> str:
    """Shell-quote a value; plain words and paths come back unchanged."""
    return shlex.quote(str(value))


@dataclass(frozen=True)
class Statement:
    """Base class for all script statements."""

    def render(self, depth: int = 0) -> list[str]:
        raise NotImplementedError


@dataclass(frozen=True)
class Comment(Statement):
    text: str

    def render(self, depth: int = 0) -> list[str]:
        return [f"{INDENT * depth}# {line}".rstrip() for line in self.text.splitlines()]


@dataclass(frozen=True)
class Blank(Statement):
    def render(self, depth: int = 0) -> list[str]:
        return [""]


@dataclass(frozen=True)
class Assign(Statement):
    """
    A variable assignment.

    Attributes:
        name: Variable name
        value: Right-hand side, already in shell syntax
        append: Render as "+=" instead of "="
        export: Prefix the assignment with "export"
    """

    name: str
    value: str
    append: bool = False
    export: bool = False

    def render(self, depth: int = 0) -> list[str]:
        operator = "+=" if self.append else "="
        prefix = "export " if self.export else ""
        return [f"{INDENT * depth}{prefix}{self.name}{operator}{self.value}"]


@dataclass(frozen=True)
class Command(Statement):
    """A single command line, already in shell syntax."""

    line: str

    def render(self, depth: int = 0) -> list[str]:
        return [f"{INDENT * depth}{self.line}"]


@dataclass(frozen=True)
class Continue(Statement):
    def render(self, depth: int = 0) -> list[str]:
        return [f"{INDENT * depth}continue"]


@dataclass(frozen=True)
class If(Statement):
    """
    A conditional block.

    Attributes:
        condition: Test expression placed inside "[[ ... ]]" or "[ ... ]"
        body: Statements run when the condition holds
        double_brackets: Use the bash "[[" test instead of "["
    """

    condition: str
    body: tuple[Statement, ...] = field(default_factory=tuple)
    double_brackets: bool = False

    def render(self, depth: int = 0) -> list[str]:
        opening, closing = ("[[", "]]") if self.double_brackets else ("[", "]")
        lines = [f"{INDENT * depth}if {opening} {self.condition} {closing}; then"]
        for statement in self.body:
            lines.extend(statement.render(depth + 1))
        lines.append(f"{INDENT * depth}fi")
        return lines


@dataclass(frozen=True)
class OrElse(Statement):
    """Run a command and, if it fails, a brace group: "cmd || { ...; }"."""

    command: str
    body: tuple[Statement, ...] = field(default_factory=tuple)

    def render(self, depth: int = 0) -> list[str]:
        lines = [f"{INDENT * depth}{self.command} || {{"]
        for statement in self.body:
            rendered = statement.render(depth + 1)
            # Only a statement's closing line ends it; inner lines of a compound stay as they are.
            if rendered and rendered[-1].strip():
                rendered[-1] = f"{rendered[-1]};"
            lines.extend(rendered)
        lines.append(f"{INDENT * depth}}}")
        return lines


@dataclass(frozen=True)
class ForEachLine(Statement):
    """
    Split a variable into lines and loop over them.

    Renders a readarray of the source variable followed by a for loop over
    the resulting array.

    Attributes:
        source: Name of the variable holding newline-separated text
        array: Name of the array receiving the lines
        variable: Loop variable name
        body: Statements run for each line
    """

    source: str
    array: str
    variable: str
    body: tuple[Statement, ...] = field(default_factory=tuple)

    def render(self, depth: int = 0) -> list[str]:
        pad = INDENT * depth
        lines = [
            f'{pad}readarray {self.array} <<< "${self.source}"',
            f'{pad}for {self.variable} in "${{{self.array}[@]}}"',
            f"{pad}do",
        ]
        for statement in self.body:
            lines.extend(statement.render(depth + 1))
        lines.append(f"{pad}done")
        return lines


@dataclass(frozen=True)
class Script:
    """An ordered sequence of statements forming a complete shell script."""

    statements: tuple[Statement, ...]

    def __iter__(self):
        return iter(self.statements)

    def walk(self):
        """Yield every statement, descending into nested bodies."""
        pending = list(reversed(self.statements))
        while pending:
            statement = pending.pop()
            yield statement
            body = getattr(statement, "body", ())
            pending.extend(reversed(body))

    def render(self) -> str:
        lines: list[str] = []
        for statement in self.statements:
            lines.extend(statement.render())
        return "\n".join(lines) + "\n"
