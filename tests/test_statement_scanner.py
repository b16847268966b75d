"""
Unit tests for statement_scanner module.
"""

import pytest
from pathlib import Path

from pgdump_split.errors import ScanError
from pgdump_split.statement_scanner import (
    StatementScanner,
    decode_dump,
    read_dump_file,
    scan_statements,
)


def bodies(sql: str) -> list[str]:
    return [s.body for s in scan_statements(sql)]


class TestStatementBoundaries:
    """Tests for finding top-level semicolons."""

    def test_simple_statements(self):
        """Test splitting plain statements."""
        sql = "CREATE SCHEMA a;\nCREATE SCHEMA b;\n"
        assert bodies(sql) == ["CREATE SCHEMA a;", "CREATE SCHEMA b;"]

    def test_semicolon_in_string_literal(self):
        """Test that a semicolon inside a string does not end the statement."""
        sql = "CREATE TABLE t (a text DEFAULT 'x;y');\nCREATE SCHEMA s;"
        assert bodies(sql) == [
            "CREATE TABLE t (a text DEFAULT 'x;y');",
            "CREATE SCHEMA s;",
        ]

    def test_doubled_quote_in_string(self):
        """Test '' escapes inside a string literal."""
        sql = "COMMENT ON SCHEMA s IS 'it''s; fine';"
        assert bodies(sql) == [sql]

    def test_escape_string_backslash_quote(self):
        """Test E'' strings where backslash escapes a quote."""
        sql = "COMMENT ON SCHEMA s IS E'it\\'s; fine';"
        assert bodies(sql) == [sql]

    def test_backslash_in_standard_string(self):
        """Test that backslash is literal in a standard string."""
        sql = "COMMENT ON SCHEMA s IS 'C:\\';\nCREATE SCHEMA t;"
        assert bodies(sql) == ["COMMENT ON SCHEMA s IS 'C:\\';", "CREATE SCHEMA t;"]

    def test_semicolon_in_quoted_identifier(self):
        """Test that a semicolon inside a quoted identifier is kept."""
        sql = 'CREATE SCHEMA "odd;name";'
        assert bodies(sql) == [sql]

    def test_dollar_quoted_body(self):
        """Test $$ bodies containing semicolons."""
        sql = (
            "CREATE FUNCTION f() RETURNS int LANGUAGE sql AS $$ SELECT 1; SELECT 2; $$;\n"
            "CREATE SCHEMA s;"
        )
        result = bodies(sql)
        assert len(result) == 2
        assert result[0].endswith("SELECT 2; $$;")

    def test_tagged_dollar_quote(self):
        """Test $tag$ bodies containing $$ and semicolons."""
        sql = "CREATE FUNCTION f() RETURNS text LANGUAGE sql AS $body$ SELECT '$$;' $body$;"
        assert bodies(sql) == [sql]

    def test_dollar_inside_identifier(self):
        """Test that a $ inside an identifier is not a quote opener."""
        sql = "CREATE TABLE a$b (x integer);\nCREATE SCHEMA s;"
        assert bodies(sql) == ["CREATE TABLE a$b (x integer);", "CREATE SCHEMA s;"]

    def test_line_comment_with_semicolon(self):
        """Test that a semicolon inside a line comment is ignored."""
        sql = "-- drop; everything\nCREATE SCHEMA s;"
        assert bodies(sql) == ["CREATE SCHEMA s;"]

    def test_nested_block_comment(self):
        """Test nested block comments containing semicolons."""
        sql = "/* outer /* inner; */ still; comment */ CREATE SCHEMA s;"
        assert bodies(sql) == ["CREATE SCHEMA s;"]

    def test_comments_preserved_in_text(self):
        """Test that leading comments stay in the verbatim text."""
        sql = "--\n-- Name: s; Type: SCHEMA\n--\n\nCREATE SCHEMA s;"
        stmt = next(scan_statements(sql))
        assert stmt.text == sql
        assert stmt.body == "CREATE SCHEMA s;"

    def test_trailing_comments_are_not_a_statement(self):
        """Test that comments after the last statement are dropped."""
        sql = "CREATE SCHEMA s;\n\n--\n-- PostgreSQL database dump complete\n--\n"
        assert bodies(sql) == ["CREATE SCHEMA s;"]

    def test_begin_atomic_body(self):
        """Test that a SQL-standard function body is one statement."""
        sql = (
            "CREATE FUNCTION public.f() RETURNS integer\n"
            "    LANGUAGE sql\n"
            "    BEGIN ATOMIC\n"
            " SELECT 1;\n"
            "END;\n"
            "CREATE SCHEMA s;\n"
        )
        result = bodies(sql)
        assert len(result) == 2
        assert result[0].startswith("CREATE FUNCTION public.f()")
        assert result[0].endswith("SELECT 1;\nEND;")
        assert result[1] == "CREATE SCHEMA s;"

    def test_begin_atomic_with_case(self):
        """Test CASE ... END nested inside BEGIN ATOMIC."""
        sql = (
            "CREATE OR REPLACE PROCEDURE public.p(IN x integer)\n"
            "    LANGUAGE sql\n"
            "    BEGIN ATOMIC\n"
            " SELECT CASE WHEN x > 0 THEN 1 ELSE 0 END;\n"
            " SELECT 2;\n"
            "END;\n"
            "CREATE SCHEMA s;\n"
        )
        result = bodies(sql)
        assert len(result) == 2
        assert result[0].endswith("SELECT 2;\nEND;")

    def test_begin_outside_routine(self):
        """Test that BEGIN only nests inside CREATE FUNCTION / PROCEDURE."""
        sql = "COMMENT ON SCHEMA s IS 'x';\nCREATE TABLE begin_log (id integer);\nCREATE SCHEMA t;"
        assert bodies(sql) == [
            "COMMENT ON SCHEMA s IS 'x';",
            "CREATE TABLE begin_log (id integer);",
            "CREATE SCHEMA t;",
        ]

    def test_semicolon_in_parentheses(self):
        """Test that a semicolon inside parentheses does not end the statement."""
        sql = "CREATE RULE r AS ON INSERT TO public.t DO INSTEAD (NOTHING; NOTHING);\nCREATE SCHEMA s;"
        assert len(bodies(sql)) == 2

    def test_empty_input(self):
        """Test empty and whitespace-only input."""
        assert bodies("") == []
        assert bodies("  \n\n") == []


class TestMetaCommands:
    """Tests for psql meta-commands."""

    def test_meta_command_ends_at_newline(self):
        """Test that a backslash command at statement start is one statement."""
        sql = "\\connect mydb\nCREATE SCHEMA s;\n"
        assert bodies(sql) == ["\\connect mydb", "CREATE SCHEMA s;"]

    def test_restrict_after_header_comment(self):
        """Test \\restrict following the dump header."""
        sql = "--\n-- PostgreSQL database dump\n--\n\n\\restrict abc123\n\nSET a = 1;\n"
        assert bodies(sql) == ["\\restrict abc123", "SET a = 1;"]

    def test_meta_command_at_end_of_input(self):
        """Test a meta-command without trailing newline."""
        assert bodies("CREATE SCHEMA s;\n\\unrestrict abc") == [
            "CREATE SCHEMA s;",
            "\\unrestrict abc",
        ]


class TestPositions:
    """Tests for offsets and line numbers."""

    def test_offsets_and_lines(self):
        """Test offset of statement text and line of its first keyword."""
        sql = "SET a = 1;\n\n-- c\nCREATE SCHEMA s;\n"
        first, second = list(scan_statements(sql))
        assert first.offset == 0
        assert first.line == 1
        assert second.offset == 10
        assert second.line == 4
        assert sql[second.offset:].startswith("\n\n-- c")

    def test_text_covers_input(self):
        """Test that statement texts are contiguous slices of the input."""
        sql = "CREATE SCHEMA a;\n-- x\nCREATE SCHEMA b;"
        stmts = list(scan_statements(sql))
        assert "".join(s.text for s in stmts) == sql


class TestScanErrors:
    """Tests for unterminated constructs."""

    def test_unterminated_statement(self):
        """Test missing final semicolon."""
        with pytest.raises(ScanError) as exc_info:
            list(scan_statements("CREATE SCHEMA a;\nCREATE SCHEMA b"))
        assert exc_info.value.line == 2
        assert exc_info.value.offset == 17
        assert "CREATE SCHEMA b" in str(exc_info.value)

    def test_unterminated_string(self):
        """Test unterminated string literal."""
        with pytest.raises(ScanError, match="string literal"):
            list(scan_statements("COMMENT ON SCHEMA s IS 'abc;\n"))

    def test_unterminated_identifier(self):
        """Test unterminated quoted identifier."""
        with pytest.raises(ScanError, match="identifier"):
            list(scan_statements('CREATE SCHEMA "abc;'))

    def test_unterminated_dollar_quote(self):
        """Test unterminated dollar-quoted body."""
        with pytest.raises(ScanError, match=r"\$fn\$"):
            list(scan_statements("CREATE FUNCTION f() AS $fn$ SELECT 1;"))

    def test_unterminated_block_comment(self):
        """Test unterminated block comment."""
        with pytest.raises(ScanError, match="block comment"):
            list(scan_statements("CREATE SCHEMA s;\n/* never /* closed */"))


class TestScannerInput:
    """Tests for input decoding and restartability."""

    def test_restartable(self):
        """Test that iterating twice yields the same statements."""
        scanner = StatementScanner("CREATE SCHEMA a;\nCREATE SCHEMA b;\n")
        assert list(scanner) == list(scanner)

    def test_bytes_with_bom(self):
        """Test UTF-8 bytes input with a byte order mark."""
        stmts = list(scan_statements(b"\xef\xbb\xbfCREATE SCHEMA s;"))
        assert stmts[0].body == "CREATE SCHEMA s;"
        assert stmts[0].offset == 0

    def test_decode_str_with_bom(self):
        """Test BOM removal from str input."""
        assert decode_dump("\ufeffCREATE SCHEMA s;") == "CREATE SCHEMA s;"

    def test_non_ascii_identifiers(self):
        """Test that non-ASCII text passes through unchanged."""
        sql = 'CREATE SCHEMA "sch\u00e9ma";'
        assert bodies(sql) == [sql]

    def test_read_dump_file(self, tmp_path: Path):
        """Test reading a dump file with a BOM."""
        path = tmp_path / "dump.sql"
        path.write_bytes(b"\xef\xbb\xbfCREATE SCHEMA s;\n")
        assert read_dump_file(path) == "CREATE SCHEMA s;\n"
