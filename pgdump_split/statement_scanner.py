"""
Statement scanner: split a pg_dump script into top-level statements.

Handles:
- Single-quoted literals ('' escapes, E'' backslash escapes)
- Double-quoted identifiers ("" escapes)
- Dollar-quoted bodies ($$...$$, $tag$...$tag$)
- Line comments (--) and nested block comments (/* /* */ */)
- psql meta-commands (\\connect, \\restrict) which end at end of line
- SQL-standard routine bodies (BEGIN ATOMIC ... END) whose inner
  semicolons do not end the CREATE FUNCTION / PROCEDURE statement

Comments are preserved verbatim in the statement text; only a semicolon
outside every quoted region, comment, parenthesis and routine BEGIN ... END
block terminates a statement.
"""

import re
from pathlib import Path
from typing import Iterator

from pgdump_split.errors import ScanError
from pgdump_split.object_model import RawStatement


DOLLAR_QUOTE_RE = re.compile(r"\$([^\W\d]\w*)?\$")
WORD_RE = re.compile(r"\w[\w$]*")

ROUTINE_HEADS = (
    ("CREATE", "FUNCTION"),
    ("CREATE", "PROCEDURE"),
    ("CREATE", "OR", "REPLACE", "FUNCTION"),
    ("CREATE", "OR", "REPLACE", "PROCEDURE"),
)


def decode_dump(data: str | bytes) -> str:
    """
    Return dump text as str, handling BOM.

    Args:
        data: Dump content as text or UTF-8 bytes

    Returns:
        Dump text with BOM removed
    """
    if isinstance(data, bytes):
        return data.decode("utf-8-sig")  # utf-8-sig handles BOM
    return data.lstrip("\ufeff")


def read_dump_file(dump_path: Path) -> str:
    """Read a plain-text dump file."""
    return dump_path.read_text(encoding="utf-8-sig")


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_" or ch == "$"


def _is_routine_head(head: list[str]) -> bool:
    return any(tuple(head[:len(prefix)]) == prefix for prefix in ROUTINE_HEADS)


def _track_block(word: str, depth: int) -> int:
    """
    Update BEGIN ... END nesting for one keyword of a routine statement.

    CASE also closes with END, so it counts once inside a block.
    """
    if word == "BEGIN":
        return depth + 1
    if word == "CASE" and depth > 0:
        return depth + 1
    if word == "END" and depth > 0:
        return depth - 1
    return depth


class StatementScanner:
    """
    Iterates over the top-level statements of a dump.

    Iterating twice restarts from the beginning of the text.
    """

    def __init__(self, text: str):
        self.text = text
        self._line_pos = 0
        self._line_no = 1

    def __iter__(self) -> Iterator[RawStatement]:
        return self.statements()

    def _line_at(self, pos: int) -> int:
        """1-based line number of pos; positions are queried in increasing order."""
        if pos < self._line_pos:
            self._line_pos = 0
            self._line_no = 1
        self._line_no += self.text.count("\n", self._line_pos, pos)
        self._line_pos = pos
        return self._line_no

    def _error(self, message: str, pos: int) -> ScanError:
        return ScanError(message, pos, self._line_at(pos), self.text[pos:pos + 80])

    def _make_statement(self, start: int, end: int, body_start: int) -> RawStatement:
        return RawStatement(
            text=self.text[start:end],
            offset=start,
            line=self._line_at(body_start),
            body_start=body_start - start,
        )

    def _skip_block_comment(self, i: int) -> int:
        """Return the index after the block comment starting at i (nesting allowed)."""
        sql = self.text
        n = len(sql)
        depth = 1
        j = i + 2
        while j < n:
            if sql[j:j+2] == "/*":
                depth += 1
                j += 2
            elif sql[j:j+2] == "*/":
                depth -= 1
                j += 2
                if depth == 0:
                    return j
            else:
                j += 1
        raise self._error("unterminated block comment", i)

    def _skip_quoted(self, i: int, quote: str, backslash_escapes: bool = False) -> int:
        """Return the index after the quoted region opened at i."""
        sql = self.text
        n = len(sql)
        j = i + 1
        while j < n:
            if backslash_escapes and sql[j] == "\\":
                j += 2
            elif sql[j] == quote and j + 1 < n and sql[j + 1] == quote:
                # Escaped quote
                j += 2
            elif sql[j] == quote:
                return j + 1
            else:
                j += 1
        kind = "identifier" if quote == '"' else "string literal"
        raise self._error(f"unterminated quoted {kind}", i)

    def _skip_dollar_quoted(self, i: int) -> int | None:
        """
        Return the index after the dollar-quoted body opened at i.

        Returns None when the dollar sign does not open a quote
        (positional parameter such as $1, or part of an identifier).
        """
        sql = self.text
        if i > 0 and _is_ident_char(sql[i - 1]):
            return None
        match = DOLLAR_QUOTE_RE.match(sql, i)
        if match is None:
            return None
        delimiter = match.group(0)
        close = sql.find(delimiter, match.end())
        if close < 0:
            raise self._error(f"unterminated dollar-quoted string {delimiter}", i)
        return close + len(delimiter)

    def statements(self) -> Iterator[RawStatement]:
        """Yield RawStatements in source order."""
        sql = self.text
        n = len(sql)
        start = 0
        body_start: int | None = None
        # Per-statement state: leading keywords, parenthesis and BEGIN depth
        head: list[str] = []
        paren_depth = 0
        begin_depth = 0
        i = 0

        while i < n:
            ch = sql[i]
            if ch.isspace():
                i += 1
            # Single-line comment
            elif sql[i:i+2] == "--":
                j = sql.find("\n", i + 2)
                i = n if j < 0 else j + 1
            # Block comment
            elif sql[i:i+2] == "/*":
                i = self._skip_block_comment(i)
            # psql meta-command at statement start: runs to end of line
            elif ch == "\\" and body_start is None:
                j = sql.find("\n", i)
                end = n if j < 0 else j
                yield self._make_statement(start, end, i)
                start = end
                i = end
            else:
                if body_start is None:
                    body_start = i
                if ch == "'":
                    escapes = (
                        i > 0 and sql[i - 1] in "eE"
                        and (i < 2 or not _is_ident_char(sql[i - 2]))
                    )
                    i = self._skip_quoted(i, "'", backslash_escapes=escapes)
                elif ch == '"':
                    i = self._skip_quoted(i, '"')
                elif ch == "$":
                    end = self._skip_dollar_quoted(i)
                    i = i + 1 if end is None else end
                elif ch == "(":
                    paren_depth += 1
                    i += 1
                elif ch == ")":
                    paren_depth = max(paren_depth - 1, 0)
                    i += 1
                elif ch.isalnum() or ch == "_":
                    word = WORD_RE.match(sql, i).group(0)
                    if len(head) < 4:
                        head.append(word.upper())
                    if paren_depth == 0 and _is_routine_head(head):
                        begin_depth = _track_block(word.upper(), begin_depth)
                    i += len(word)
                elif ch == ";" and paren_depth == 0 and begin_depth == 0:
                    yield self._make_statement(start, i + 1, body_start)
                    start = i + 1
                    body_start = None
                    head = []
                    i += 1
                else:
                    i += 1

        if body_start is not None:
            raise ScanError(
                "unterminated statement (missing ';')",
                body_start,
                self._line_at(body_start),
                sql[body_start:body_start + 80],
            )


def scan_statements(text: str | bytes) -> Iterator[RawStatement]:
    """
    Scan dump text into top-level statements.

    Args:
        text: Full dump text (str or UTF-8 bytes)

    Returns:
        Lazy iterator of RawStatement; call again to restart

    Raises:
        ScanError: Unterminated quote, comment or statement
    """
    return StatementScanner(decode_dump(text)).statements()
