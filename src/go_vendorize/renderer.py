"""
Vendor script generation.

Builds the shell script that re-vendors a project's external dependencies:
a throw-away GOPATH is created, the project is linked into it under its own
import path, every dependency is fetched with 'go get', the result is synced
into <project>/vendor, and each fetched repository is optionally registered
as a git submodule.
"""

from __future__ import annotations

import sys
from typing import TextIO

from .script import (
    Assign,
    Blank,
    Command,
    Comment,
    Continue,
    ForEachLine,
    If,
    OrElse,
    Script,
    Statement,
    quote,
)
from .types import ImportPath, RenderContext

OUTPUT_VARIABLE = "installedPackagesStr"


def fetch_statements(package: ImportPath) -> list[Statement]:
    """Statements fetching one package and capturing its output."""
    return [
        Assign(OUTPUT_VARIABLE, f'"$(go get -d -v -t {quote(package)} 2>&1)"', append=True),
        Assign(OUTPUT_VARIABLE, "$'\\n'", append=True),
    ]


def submodule_statements(context: RenderContext) -> list[Statement]:
    """Statements registering every fetched repository as a git submodule."""
    project = quote(context.directory)
    gitmodules = f"{project}/.gitmodules"

    register = If(
        '-n "$remoteUrl"',
        (
            Comment(
                "Resolve the absolute path to a relative one for .gitmodules. Only the\n"
                "repository root is added, never one of its subpackages."
            ),
            Assign("toplevelDir", f'"$(git -C {project}/vendor/"$pkg" rev-parse --show-toplevel)"'),
            Assign("resolvedDir", '"${toplevelDir#"$cwd"}"'),
            Command(f'git -C {project} submodule add -f "$remoteUrl" "$resolvedDir" || true'),
            Blank(),
            Comment("Declare the submodule manually if 'git submodule add' did not."),
            OrElse(
                f'grep -q "path = $resolvedDir" {gitmodules}',
                (
                    Command(f'echo "[submodule \\"vendor/$pkg\\"]" >> {gitmodules}'),
                    Command(f'echo "\tpath = $resolvedDir" >> {gitmodules}'),
                    Command(f'echo "\turl = $remoteUrl" >> {gitmodules}'),
                ),
            ),
        ),
    )

    loop = ForEachLine(
        source=OUTPUT_VARIABLE,
        array="installedPackages",
        variable="entry",
        body=(
            Comment("The array may contain empty elements which we want to filter out"),
            Assign("entry", '"$(echo "$entry" | tr -d \'\\n\')"'),
            If('-z "$entry"', (Continue(),), double_brackets=True),
            Blank(),
            Comment(
                "'go get' outputs lines such as 'github.com/tus/usd (download)' but only\n"
                "the import path is of interest"
            ),
            Assign("pkg", '"$(echo "$entry" | cut -d\' \' -f 1)"'),
            Blank(),
            Comment("Look for a remote URL to register this package as a submodule"),
            Assign(
                "remoteUrl",
                f'"$(git -C {project}/vendor/"$pkg" config --get remote.origin.url || true)"',
            ),
            register,
        ),
    )

    return [
        Comment("Set currently used working directory"),
        Assign("cwd", quote(f"{context.directory}/")),
        Blank(),
        loop,
    ]


def link_name(context: RenderContext) -> str:
    """Path under $GOPATH/src where the project is linked."""
    return context.import_prefix or context.directory.name


def build_vendor_script(context: RenderContext) -> Script:
    """
    Build the statement sequence of the vendor script.

    Args:
        context: Project directory, packages to fetch, prefix and submodule flag

    Returns:
        The complete Script

    Raises:
        ValueError: If the context lists no packages
    """
    if not context.packages:
        raise ValueError("cannot build a vendor script without packages")

    project = quote(context.directory)
    link = f"$GOPATH/src/{quote(link_name(context))}"

    statements: list[Statement] = [
        Command("#!/usr/bin/env bash"),
        Comment("Automatically abort on error"),
        Command("set -e"),
        Blank(),
        Comment(
            "Create temporary directory to simulate empty GOPATH. 'go get' will download\n"
            "the dependencies into this path where we later copy them from."
        ),
        Assign("tmpDir", '"$(mktemp --directory)"'),
        Blank(),
        Comment("Remove currently installed vendored dependencies"),
        Command(f"rm -rf {project}/vendor/*"),
        Blank(),
        Comment("Setup environment for 'go get'"),
        Assign("GO15VENDOREXPERIMENT", "0", export=True),
        Assign("GOPATH", '"$tmpDir"', export=True),
        Blank(),
        Comment("Setup link from temporary GOPATH to the current package"),
        Command(f"mkdir -p {link}"),
        Command(f"rm -r {link}"),
        Command(f"ln -s {project} {link}"),
        Blank(),
        Command(f"cd {link}"),
        Blank(),
        Comment("Download dependencies into temporary directory"),
        Assign(OUTPUT_VARIABLE, '""'),
    ]
    for package in context.packages:
        statements.extend(fetch_statements(package))

    statements += [
        Blank(),
        Comment("Remove symlink"),
        Command(f"rm -rf {link}"),
        Blank(),
        Comment("Move vendored dependencies from temporary storage into current project"),
        Command(f'rsync -r "$tmpDir/src/" {project}/vendor'),
        Blank(),
    ]

    if context.add_submodules:
        statements.extend(submodule_statements(context))
    else:
        statements.append(Comment("Adding submodules disabled"))

    statements += [
        Blank(),
        Comment("Remove temporary package installation directory"),
        Command('rm -rf "$tmpDir"'),
    ]
    return Script(tuple(statements))


def render_script(context: RenderContext) -> str:
    """Render the vendor script for a context as text."""
    return build_vendor_script(context).render()


class ScriptRenderer:
    """
    Writes vendor scripts to a text stream.

    Attributes:
        stream: Destination stream (default: standard output)
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream if stream is not None else sys.stdout

    def render(self, context: RenderContext) -> None:
        """Write the vendor script for a context."""
        self.stream.write(render_script(context))
        self.stream.flush()
