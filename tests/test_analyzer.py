"""Tests for Go source analysis."""

from __future__ import annotations

from pathlib import Path

import pytest

from go_vendorize import BuildContext, GoSourceAnalyzer
from go_vendorize.errors import MultiplePackagesError, NoSourceFilesError, SourceParseError


class TestExtractImports:
    """Tests for parsing the header of a single Go file."""

    def test_single_and_grouped_imports(self, tmp_path: Path) -> None:
        """Test that single imports and import blocks are both collected."""
        go_file = tmp_path / "main.go"
        go_file.write_text(
            """// Package main does things.
package main

import "fmt"

import (
\t"os"
\tlog "github.com/sirupsen/logrus"
\t. "github.com/onsi/gomega"
\t_ "github.com/lib/pq"
)

func main() { fmt.Println("import \\"not/an/import\\"") }
"""
        )

        analyzer = GoSourceAnalyzer()
        name, imports = analyzer.extract_imports(go_file)

        assert name == "main"
        assert [imp.path for imp in imports] == [
            "fmt",
            "os",
            "github.com/sirupsen/logrus",
            "github.com/onsi/gomega",
            "github.com/lib/pq",
        ]
        assert [imp.alias for imp in imports] == [None, None, "log", ".", "_"]

    def test_line_numbers_and_file_path(self, tmp_path: Path) -> None:
        """Test that each import records where it was found."""
        go_file = tmp_path / "a.go"
        go_file.write_text('package a\n\nimport (\n\t"fmt"\n\t"os"\n)\n')

        _, imports = GoSourceAnalyzer().extract_imports(go_file)

        assert [imp.line_number for imp in imports] == [4, 5]
        assert all(imp.file_path == go_file for imp in imports)

    def test_comments_and_semicolons(self, tmp_path: Path) -> None:
        """Test that comments anywhere in the header are ignored."""
        go_file = tmp_path / "a.go"
        go_file.write_text(
            '/* block\ncomment */ package a; import ( "fmt"; /* x */ "os" // trailing\n)\nvar x = 1\n'
        )

        name, imports = GoSourceAnalyzer().extract_imports(go_file)

        assert name == "a"
        assert [imp.path for imp in imports] == ["fmt", "os"]

    def test_raw_string_import(self, tmp_path: Path) -> None:
        """Test that raw string literals are accepted as import paths."""
        go_file = tmp_path / "a.go"
        go_file.write_text("package a\n\nimport `github.com/x/y`\n")

        _, imports = GoSourceAnalyzer().extract_imports(go_file)

        assert [imp.path for imp in imports] == ["github.com/x/y"]

    def test_octal_and_control_escapes(self, tmp_path: Path) -> None:
        """Test that octal and single-letter escapes in import strings are decoded."""
        go_file = tmp_path / "a.go"
        go_file.write_text('package a\n\nimport (\n\t"github.com/x/\\171"\n\t"github.com/x/z\\a"\n)\n')

        _, imports = GoSourceAnalyzer().extract_imports(go_file)

        assert [imp.path for imp in imports] == ["github.com/x/y", "github.com/x/z\a"]

    def test_invalid_octal_escape(self, tmp_path: Path) -> None:
        go_file = tmp_path / "broken.go"
        go_file.write_text('package a\n\nimport "github.com/x/\\18"\n')

        with pytest.raises(SourceParseError, match="escape"):
            GoSourceAnalyzer().extract_imports(go_file)

    def test_byte_order_mark(self, tmp_path: Path) -> None:
        """Test that a leading byte-order mark does not hide the package clause."""
        go_file = tmp_path / "main.go"
        go_file.write_text('\ufeffpackage main\n\nimport "github.com/x/y"\n', encoding="utf-8")

        name, imports = GoSourceAnalyzer().extract_imports(go_file)

        assert name == "main"
        assert [imp.path for imp in imports] == ["github.com/x/y"]

    def test_parsing_stops_at_first_declaration(self, tmp_path: Path) -> None:
        """Test that imports after other declarations are not considered."""
        go_file = tmp_path / "a.go"
        go_file.write_text('package a\n\nimport "fmt"\n\nfunc f() {}\n\nimport "os"\n')

        _, imports = GoSourceAnalyzer().extract_imports(go_file)

        assert [imp.path for imp in imports] == ["fmt"]

    def test_missing_package_clause(self, tmp_path: Path) -> None:
        """Test that a file without a package clause is a parse error."""
        go_file = tmp_path / "broken.go"
        go_file.write_text("this is not Go source\n")

        with pytest.raises(SourceParseError, match="package"):
            GoSourceAnalyzer().extract_imports(go_file)

    def test_unterminated_import_block(self, tmp_path: Path) -> None:
        """Test that an import block without closing parenthesis is a parse error."""
        go_file = tmp_path / "broken.go"
        go_file.write_text('package a\n\nimport (\n\t"fmt"\n')

        with pytest.raises(SourceParseError):
            GoSourceAnalyzer().extract_imports(go_file)

    def test_import_without_path(self, tmp_path: Path) -> None:
        """Test that an import spec lacking a string is a parse error."""
        go_file = tmp_path / "broken.go"
        go_file.write_text("package a\n\nimport fmt\n")

        with pytest.raises(SourceParseError, match="import path"):
            GoSourceAnalyzer().extract_imports(go_file)


class TestBuildConstraints:
    """Tests for comment build constraints on files."""

    def test_go_build_ignore_excludes_file(self, tmp_path: Path) -> None:
        """Test that '//go:build ignore' removes a file from the build."""
        go_file = tmp_path / "gen.go"
        content = '//go:build ignore\n\npackage main\n\nimport "github.com/x/gen"\n'

        assert GoSourceAnalyzer().should_build(go_file, content) is False

    def test_go_build_matching_os(self, tmp_path: Path) -> None:
        """Test that a satisfied expression keeps the file."""
        go_file = tmp_path / "a.go"
        content = "// Copyright notice\n\n//go:build linux && !386\n\npackage a\n"

        analyzer = GoSourceAnalyzer(BuildContext(goos="linux", goarch="amd64"))

        assert analyzer.should_build(go_file, content) is True

    def test_plus_build_lines(self, tmp_path: Path) -> None:
        """Test legacy '+build' lines when no //go:build line is present."""
        go_file = tmp_path / "a.go"
        content = "// +build darwin freebsd\n\npackage a\n"

        assert GoSourceAnalyzer(BuildContext(goos="linux")).should_build(go_file, content) is False
        assert GoSourceAnalyzer(BuildContext(goos="darwin")).should_build(go_file, content) is True

    def test_constraints_after_package_clause_are_ignored(self, tmp_path: Path) -> None:
        """Test that only comments before the package clause count."""
        go_file = tmp_path / "a.go"
        content = "package a\n\n//go:build ignore\n"

        assert GoSourceAnalyzer().should_build(go_file, content) is True

    def test_malformed_expression(self, tmp_path: Path) -> None:
        """Test that a malformed //go:build line is a parse error."""
        go_file = tmp_path / "a.go"
        content = "//go:build linux &&\n\npackage a\n"

        with pytest.raises(SourceParseError):
            GoSourceAnalyzer().should_build(go_file, content)


class TestImportDir:
    """Tests for classifying a directory as a Go package."""

    def test_package_with_tests(self, tmp_path: Path, write_go_file) -> None:
        """Test that regular, test and external test imports are kept apart."""
        write_go_file(tmp_path / "lib.go", package="lib", imports=["strings", "github.com/a/b"])
        write_go_file(tmp_path / "lib_test.go", package="lib", imports=["testing", "github.com/a/b"])
        write_go_file(tmp_path / "api_test.go", package="lib_test", imports=["github.com/stretchr/testify"])

        package = GoSourceAnalyzer().import_dir(tmp_path)

        assert package.name == "lib"
        assert package.imports == ["github.com/a/b", "strings"]
        assert package.test_imports == ["github.com/a/b", "testing"]
        assert package.xtest_imports == ["github.com/stretchr/testify"]
        assert package.all_imports() == [
            "github.com/a/b",
            "strings",
            "testing",
            "github.com/stretchr/testify",
        ]

    def test_no_go_files(self, tmp_path: Path) -> None:
        """Test that a directory without Go files is reported as such."""
        (tmp_path / "README.md").write_text("# docs")

        with pytest.raises(NoSourceFilesError):
            GoSourceAnalyzer().import_dir(tmp_path)

    def test_ignored_files_only(self, tmp_path: Path, write_go_file) -> None:
        """Test that files starting with '_' or '.' do not make a package."""
        write_go_file(tmp_path / "_scratch.go", imports=["github.com/x/y"])
        write_go_file(tmp_path / ".hidden.go", imports=["github.com/x/z"])

        with pytest.raises(NoSourceFilesError):
            GoSourceAnalyzer().import_dir(tmp_path)

    def test_constraints_exclude_all_files(self, tmp_path: Path, write_go_file) -> None:
        """Test that a directory whose files are all excluded is not a package."""
        write_go_file(tmp_path / "tools.go", header="//go:build tools\n", imports=["github.com/x/tool"])

        with pytest.raises(NoSourceFilesError):
            GoSourceAnalyzer().import_dir(tmp_path)

    def test_extra_tags_enable_files(self, tmp_path: Path, write_go_file) -> None:
        """Test that configured tags satisfy build constraints."""
        write_go_file(tmp_path / "tools.go", header="//go:build tools\n", imports=["github.com/x/tool"])

        package = GoSourceAnalyzer(BuildContext(tags=["tools"])).import_dir(tmp_path)

        assert package.imports == ["github.com/x/tool"]

    def test_filename_constraints(self, tmp_path: Path, write_go_file) -> None:
        """Test that GOOS/GOARCH file name suffixes select files."""
        write_go_file(tmp_path / "sys_windows.go", package="sys", imports=["golang.org/x/sys/windows"])
        write_go_file(tmp_path / "sys_linux_amd64.go", package="sys", imports=["golang.org/x/sys/unix"])

        package = GoSourceAnalyzer(BuildContext(goos="linux", goarch="amd64")).import_dir(tmp_path)

        assert package.imports == ["golang.org/x/sys/unix"]
        assert [path.name for path in package.go_files] == ["sys_linux_amd64.go"]

    def test_multiple_packages(self, tmp_path: Path, write_go_file) -> None:
        """Test that mixing package names in one directory is an error."""
        write_go_file(tmp_path / "a.go", package="a")
        write_go_file(tmp_path / "b.go", package="b")

        with pytest.raises(MultiplePackagesError, match="a, b"):
            GoSourceAnalyzer().import_dir(tmp_path)

    def test_byte_order_mark_file(self, tmp_path: Path) -> None:
        (tmp_path / "main.go").write_text('\ufeffpackage main\n\nimport "github.com/x/y"\n', encoding="utf-8")
        (tmp_path / "gen.go").write_text("\ufeff//go:build ignore\n\npackage other\n", encoding="utf-8")

        package = GoSourceAnalyzer().import_dir(tmp_path)

        assert package.name == "main"
        assert package.imports == ["github.com/x/y"]

    def test_external_test_package_must_match(self, tmp_path: Path, write_go_file) -> None:
        """Test that an external test package named after another package is an error."""
        write_go_file(tmp_path / "a.go", package="foo")
        write_go_file(tmp_path / "a_test.go", package="bar_test")

        with pytest.raises(MultiplePackagesError, match="foo, bar_test"):
            GoSourceAnalyzer().import_dir(tmp_path)

    def test_conflicting_external_test_packages(self, tmp_path: Path, write_go_file) -> None:
        write_go_file(tmp_path / "a_test.go", package="foo_test")
        write_go_file(tmp_path / "b_test.go", package="bar_test")

        with pytest.raises(MultiplePackagesError):
            GoSourceAnalyzer().import_dir(tmp_path)

    def test_subdirectories_are_not_read(self, tmp_path: Path, write_go_file) -> None:
        """Test that only the directory itself is analysed."""
        write_go_file(tmp_path / "a.go", package="a", imports=["github.com/top/level"])
        write_go_file(tmp_path / "sub" / "b.go", package="b", imports=["github.com/nested/dep"])

        package = GoSourceAnalyzer().import_dir(tmp_path)

        assert package.imports == ["github.com/top/level"]
