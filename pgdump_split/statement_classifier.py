"""
Statement classifier: decide which object each dump statement belongs to.

Recognition is keyword-prefix based over the statement shapes pg_dump emits:
- CREATE [OR REPLACE] <kind> name ...
- ALTER <kind> name OWNER TO / ADD CONSTRAINT / OWNED BY / other actions
- COMMENT ON <kind> name IS ...
- GRANT / REVOKE ... ON <kind> name
- ALTER DEFAULT PRIVILEGES ...
- ALTER PUBLICATION p ADD TABLE t
- CREATE / ALTER / COMMENT ON OPERATOR, matched on the raw text

Keywords are matched case-insensitively. Identifiers keep their case when
double-quoted and are folded to lower case otherwise, so "foo" and foo name
the same object. Session statements (SET, set_config, psql meta-commands)
are allow-listed and come back as IgnoredStatement; anything else that is
not recognized raises ClassificationError.
"""

import logging
import re
from dataclasses import dataclass

import sqlglot
from sqlglot import exp
from sqlglot.errors import TokenError
from sqlglot.tokens import TokenType

from pgdump_split.config import SplitterConfig
from pgdump_split.errors import ClassificationError
from pgdump_split.object_model import (
    Category,
    ClassifiedStatement,
    IgnoredStatement,
    ObjectRef,
    RawStatement,
    StatementKind,
)

logger = logging.getLogger(__name__)

DIALECT = "postgres"

STRING_TOKEN_TYPES = frozenset({
    TokenType.STRING,
    TokenType.HEREDOC_STRING,
    TokenType.NATIONAL_STRING,
    TokenType.RAW_STRING,
    TokenType.BYTE_STRING,
    TokenType.BIT_STRING,
    TokenType.HEX_STRING,
})

SET_SEARCH_PATH_RE = re.compile(
    r"SET\s+search_path\s*(?:=|\bTO\b)\s*(.*?)\s*;?\s*$",
    re.IGNORECASE | re.DOTALL,
)
SET_CONFIG_SEARCH_PATH_RE = re.compile(
    r"SELECT\s+pg_catalog\.set_config\(\s*'search_path'\s*,\s*'((?:[^']|'')*)'",
    re.IGNORECASE,
)

# Operator names are symbol runs the tokenizer splits apart, so operator
# statements are matched on the raw text: verb, optional schema, name
OPERATOR_RE = re.compile(
    r"(CREATE|ALTER|COMMENT\s+ON)\s+OPERATOR\s+"
    r"(?:(\"(?:[^\"]|\"\")+\"|[^\W\d][\w$]*)\s*\.\s*)?"
    r"([-+*/<>=~!@#%^&|`?]+)",
    re.IGNORECASE,
)
OPERATOR_ARG_RE = re.compile(r"\b(LEFTARG|RIGHTARG)\s*=\s*([^,)]+)", re.IGNORECASE)
OPERATOR_OPERANDS_RE = re.compile(r"\s*\(([^()]*)\)")
OWNER_TO_RE = re.compile(r"\s*OWNER\s+TO\b", re.IGNORECASE)

# Keyword sequence after CREATE -> (kind, category)
CREATE_OBJECTS: list[tuple[tuple[str, ...], StatementKind, Category]] = [
    (("FOREIGN", "TABLE"), StatementKind.FOREIGN_TABLE_CREATE, Category.FOREIGN_TABLE),
    (("TABLE",), StatementKind.TABLE_CREATE, Category.TABLE),
    (("MATERIALIZED", "VIEW"), StatementKind.MATERIALIZED_VIEW_CREATE, Category.MATERIALIZED_VIEW),
    (("VIEW",), StatementKind.VIEW_CREATE, Category.VIEW),
    (("SEQUENCE",), StatementKind.SEQUENCE_CREATE, Category.SEQUENCE),
    (("FUNCTION",), StatementKind.FUNCTION_CREATE, Category.FUNCTION),
    (("PROCEDURE",), StatementKind.PROCEDURE_CREATE, Category.PROCEDURE),
    (("AGGREGATE",), StatementKind.AGGREGATE_CREATE, Category.AGGREGATE),
    (("TYPE",), StatementKind.TYPE_CREATE, Category.TYPE),
    (("DOMAIN",), StatementKind.DOMAIN_CREATE, Category.DOMAIN),
    (("SCHEMA",), StatementKind.SCHEMA_CREATE, Category.SCHEMA),
    (("EXTENSION",), StatementKind.EXTENSION_CREATE, Category.EXTENSION),
    (("INDEX",), StatementKind.INDEX_CREATE, Category.INDEX),
    (("TRIGGER",), StatementKind.TRIGGER_CREATE, Category.TRIGGER),
    (("RULE",), StatementKind.RULE_CREATE, Category.RULE),
    (("POLICY",), StatementKind.POLICY_CREATE, Category.RELATION),
    (("PUBLICATION",), StatementKind.PUBLICATION_CREATE, Category.PUBLICATION),
]

CREATE_MODIFIERS = frozenset({
    "UNLOGGED", "TEMPORARY", "TEMP", "GLOBAL", "LOCAL",
    "RECURSIVE", "UNIQUE", "CONSTRAINT",
})

# Keyword sequence naming an object in ALTER / COMMENT ON / GRANT ... ON.
# TABLE maps to RELATION: pg_dump also uses it for views and sequences.
OBJECT_TYPES: list[tuple[tuple[str, ...], Category]] = [
    (("FOREIGN", "TABLE"), Category.FOREIGN_TABLE),
    (("TABLE",), Category.RELATION),
    (("MATERIALIZED", "VIEW"), Category.MATERIALIZED_VIEW),
    (("VIEW",), Category.VIEW),
    (("SEQUENCE",), Category.SEQUENCE),
    (("FUNCTION",), Category.FUNCTION),
    (("PROCEDURE",), Category.PROCEDURE),
    (("AGGREGATE",), Category.AGGREGATE),
    (("TYPE",), Category.TYPE),
    (("DOMAIN",), Category.DOMAIN),
    (("SCHEMA",), Category.SCHEMA),
    (("EXTENSION",), Category.EXTENSION),
    (("INDEX",), Category.INDEX),
    (("PUBLICATION",), Category.PUBLICATION),
]

GRANT_OBJECT_TYPES = frozenset({
    Category.RELATION,
    Category.FOREIGN_TABLE,
    Category.SEQUENCE,
    Category.FUNCTION,
    Category.PROCEDURE,
    Category.SCHEMA,
    Category.TYPE,
    Category.DOMAIN,
})

# GRANT ... ON <keyword> forms that have no object file (FOREIGN TABLE excepted)
UNSUPPORTED_GRANT_TARGETS = frozenset({
    "ALL", "DATABASE", "FOREIGN", "LANGUAGE", "LARGE", "TABLESPACE", "PARAMETER",
})

GLOBAL_CATEGORIES = frozenset({Category.SCHEMA, Category.EXTENSION, Category.PUBLICATION})


class _ParseFailure(Exception):
    """Statement does not match the shape being parsed."""


@dataclass(frozen=True)
class Word:
    """One significant token of a statement."""
    text: str
    quoted: bool = False   # double-quoted identifier
    literal: bool = False  # string constant

    @property
    def keyword(self) -> str:
        """Upper-cased text for keyword matching; empty for quoted tokens."""
        if self.quoted or self.literal:
            return ""
        return self.text.upper()

    @property
    def ident(self) -> str:
        """Identifier value with Postgres case folding applied."""
        if self.quoted or self.literal:
            return self.text
        return self.text.lower()

    def render(self) -> str:
        if self.quoted:
            return exp.to_identifier(self.text, quoted=True).sql(dialect=DIALECT)
        if self.literal:
            return "'" + self.text.replace("'", "''") + "'"
        return self.text.lower()


def tokenize_words(sql: str) -> list[Word]:
    """
    Tokenize a statement into Words using sqlglot's Postgres tokenizer.

    Comments are dropped. Multi-word keyword tokens are split so each
    Word holds exactly one keyword.

    Args:
        sql: Statement text

    Returns:
        List of Word
    """
    words: list[Word] = []
    for token in sqlglot.tokenize(sql, read=DIALECT):
        if token.token_type == TokenType.IDENTIFIER:
            words.append(Word(token.text, quoted=True))
        elif token.token_type in STRING_TOKEN_TYPES:
            words.append(Word(token.text, literal=True))
        else:
            words.extend(Word(part) for part in token.text.split())
    return words


def join_words(words: list[Word]) -> str:
    """Render words with canonical spacing around punctuation."""
    out = ""
    prev = ""
    for word in words:
        text = word.render()
        if out and text not in (".", ")", ",", "[", "]") and prev not in (".", "(", "["):
            out += " "
        out += text
        prev = text
    return out


def split_top_level(words: list[Word], separator: str = ",") -> list[list[Word]]:
    """Split words at separators outside parentheses."""
    parts: list[list[Word]] = [[]]
    depth = 0
    for word in words:
        if not word.quoted and not word.literal:
            if word.text in ("(", "["):
                depth += 1
            elif word.text in (")", "]"):
                depth -= 1
            elif word.text == separator and depth == 0:
                parts.append([])
                continue
        parts[-1].append(word)
    return [p for p in parts if p]


def normalize_signature(arg_words: list[Word]) -> str:
    """
    Normalize a routine argument list to its identity form.

    CREATE FUNCTION lists parameter defaults and OUT parameters while
    ALTER/COMMENT/GRANT use the identity arguments; both normalize equal.

    Args:
        arg_words: Words between the routine's parentheses

    Returns:
        Canonical signature, e.g. "a integer, b text"
    """
    args: list[str] = []
    for arg in split_top_level(arg_words):
        if arg[0].keyword == "OUT":
            continue
        if arg[0].keyword == "IN" and len(arg) > 1:
            arg = arg[1:]
        kept: list[Word] = []
        depth = 0
        for word in arg:
            if word.text in ("(", "[") and not word.quoted:
                depth += 1
            elif word.text in (")", "]") and not word.quoted:
                depth -= 1
            elif depth == 0 and (word.keyword == "DEFAULT" or word.text == "=") and kept:
                break
            kept.append(word)
        args.append(join_words(kept))
    return ", ".join(args)


class WordCursor:
    """Sequential reader over the Words of one statement."""

    def __init__(self, words: list[Word]):
        self.words = words
        self.pos = 0

    def peek(self, ahead: int = 0) -> Word | None:
        idx = self.pos + ahead
        if idx < len(self.words):
            return self.words[idx]
        return None

    def at_end(self) -> bool:
        word = self.peek()
        return word is None or word.text == ";"

    def at(self, *keywords: str) -> bool:
        for offset, keyword in enumerate(keywords):
            word = self.peek(offset)
            if word is None or word.keyword != keyword:
                return False
        return True

    def accept(self, *keywords: str) -> bool:
        """Consume the keyword sequence if present."""
        if self.at(*keywords):
            self.pos += len(keywords)
            return True
        return False

    def expect(self, *keywords: str) -> None:
        if not self.accept(*keywords):
            raise _ParseFailure(f"expected {' '.join(keywords)}")

    def next(self) -> Word:
        word = self.peek()
        if word is None or word.text == ";":
            raise _ParseFailure("unexpected end of statement")
        self.pos += 1
        return word

    def accept_object_type(
        self,
        table: list[tuple[tuple[str, ...], Category]],
    ) -> Category | None:
        for keywords, category in table:
            if self.accept(*keywords):
                return category
        return None

    def name_parts(self) -> list[str]:
        """Read a dotted name: part ( . part )*"""
        parts = [self.identifier()]
        while self.peek() is not None and self.peek().text == "." and not self.peek().quoted:
            self.pos += 1
            parts.append(self.identifier())
        return parts

    def identifier(self) -> str:
        word = self.next()
        if word.literal or (not word.quoted and not _is_name(word.text)):
            raise _ParseFailure(f"expected identifier, got {word.text!r}")
        return word.ident

    def paren_group(self) -> list[Word]:
        """Consume ( ... ) and return the inner words."""
        word = self.next()
        if word.text != "(" or word.quoted or word.literal:
            raise _ParseFailure("expected (")
        depth = 1
        inner: list[Word] = []
        while True:
            word = self.next()
            if not word.quoted and not word.literal:
                if word.text == "(":
                    depth += 1
                elif word.text == ")":
                    depth -= 1
                    if depth == 0:
                        return inner
            inner.append(word)

    def skip_to(self, keyword: str) -> bool:
        """Advance past the next top-level occurrence of keyword."""
        depth = 0
        while not self.at_end():
            word = self.next()
            if word.quoted or word.literal:
                continue
            if word.text == "(":
                depth += 1
            elif word.text == ")":
                depth -= 1
            elif depth == 0 and word.keyword == keyword:
                return True
        return False


def _is_name(text: str) -> bool:
    return bool(text) and (text[0].isalpha() or text[0] == "_")


def _unquote_identifier(text: str) -> str:
    if len(text) > 1 and text.startswith('"') and text.endswith('"'):
        return text[1:-1].replace('""', '"')
    return text.lower()


def _operand_type(text: str | None) -> str:
    if text is None or not text.strip():
        return "none"
    return join_words(tokenize_words(text.strip()))


class StatementClassifier:
    """
    Classifies RawStatements, tracking search_path across the dump.

    Usage:
        classifier = StatementClassifier(config)
        for raw in scan_statements(text):
            result = classifier.classify(raw)
    """

    def __init__(self, config: SplitterConfig | None = None):
        self.config = config or SplitterConfig()
        self.default_schema = self.config.default_schema
        self._ignore_res = [
            re.compile(p, re.IGNORECASE | re.DOTALL) for p in self.config.ignore_patterns
        ]

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def classify(self, raw: RawStatement) -> ClassifiedStatement | IgnoredStatement:
        """
        Classify one statement.

        Args:
            raw: Statement from the scanner

        Returns:
            ClassifiedStatement, or IgnoredStatement for allow-listed ones

        Raises:
            ClassificationError: Unrecognized, non-allow-listed statement
        """
        body = raw.body
        offset = raw.offset + raw.body_start
        for pattern in self._ignore_res:
            if pattern.match(body):
                self._track_search_path(body)
                logger.debug("Ignoring session statement at line %d: %s", raw.line, body[:60])
                return IgnoredStatement(raw=raw, reason=pattern.pattern)

        operator = OPERATOR_RE.match(body)
        try:
            if operator is not None:
                return self._classify_operator(raw, operator)
            cursor = WordCursor(tokenize_words(body))
            if cursor.at("CREATE"):
                return self._classify_create(raw, cursor)
            if cursor.at("ALTER", "DEFAULT", "PRIVILEGES"):
                return self._classify_default_privileges(raw, cursor)
            if cursor.at("ALTER"):
                return self._classify_alter(raw, cursor)
            if cursor.at("COMMENT", "ON"):
                return self._classify_comment(raw, cursor)
            if cursor.at("GRANT") or cursor.at("REVOKE"):
                return self._classify_acl(raw, cursor)
        except TokenError as e:
            raise ClassificationError(f"could not tokenize statement ({e})", offset, raw.line, body)
        except _ParseFailure as e:
            raise ClassificationError(
                f"unrecognized statement shape ({e})", offset, raw.line, body
            )
        raise ClassificationError("unrecognized statement", offset, raw.line, body)

    def _track_search_path(self, body: str) -> None:
        match = SET_CONFIG_SEARCH_PATH_RE.match(body)
        if match:
            value = match.group(1).replace("''", "'")
        else:
            match = SET_SEARCH_PATH_RE.match(body)
            if not match:
                return
            value = match.group(1)
        first = value.split(",")[0].strip().strip("'")
        if not first:
            self.default_schema = self.config.default_schema
        elif first.startswith('"') and first.endswith('"') and len(first) > 1:
            self.default_schema = first[1:-1].replace('""', '"')
        else:
            self.default_schema = first.lower()
        logger.debug("search_path schema is now %s", self.default_schema)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _qualified(self, parts: list[str]) -> tuple[str, str]:
        """Split name parts into (schema, name)."""
        if len(parts) == 1:
            return self.default_schema, parts[0]
        if len(parts) == 2:
            return parts[0], parts[1]
        raise _ParseFailure(f"too many name parts: {'.'.join(parts)}")

    def _object_ref(self, cursor: WordCursor, category: Category) -> ObjectRef:
        """Read the name (and signature for routines) of an object."""
        if category in GLOBAL_CATEGORIES:
            return ObjectRef(schema=None, category=category, name=cursor.identifier())
        schema, name = self._qualified(cursor.name_parts())
        signature = None
        if category.is_routine:
            signature = normalize_signature(cursor.paren_group())
        return ObjectRef(schema=schema, category=category, name=name, signature=signature)

    def _on_relation(self, cursor: WordCursor) -> tuple[str, str]:
        """Read '[ONLY] relation' after an ON/TO keyword."""
        cursor.accept("ONLY")
        return self._qualified(cursor.name_parts())

    # ------------------------------------------------------------------
    # OPERATOR
    # ------------------------------------------------------------------

    def _classify_operator(self, raw: RawStatement, match: re.Match) -> ClassifiedStatement:
        """
        CREATE / ALTER / COMMENT ON OPERATOR.

        The signature is "left, right" with 'none' for a missing operand,
        taken from LEFTARG / RIGHTARG on CREATE and from the parenthesized
        operand types elsewhere.
        """
        verb = match.group(1).split()[0].upper()
        schema = self.default_schema
        if match.group(2) is not None:
            schema = _unquote_identifier(match.group(2))
        rest = raw.body[match.end():]

        if verb == "CREATE":
            args = {side.upper(): text for side, text in OPERATOR_ARG_RE.findall(rest)}
            signature = ", ".join(
                _operand_type(args.get(side)) for side in ("LEFTARG", "RIGHTARG")
            )
            kind = StatementKind.OPERATOR_CREATE
        else:
            operands = OPERATOR_OPERANDS_RE.match(rest)
            if operands is None:
                raise _ParseFailure("expected operator operand types")
            parts = split_top_level(tokenize_words(operands.group(1)))
            signature = ", ".join(join_words(p) for p in parts)
            if verb == "COMMENT":
                kind = StatementKind.COMMENT
            elif OWNER_TO_RE.match(rest, operands.end()):
                kind = StatementKind.OWNER_ALTER
            else:
                kind = StatementKind.OBJECT_ALTER

        target = ObjectRef(schema, Category.OPERATOR, match.group(3), signature=signature)
        return ClassifiedStatement(raw=raw, kind=kind, target=target)

    # ------------------------------------------------------------------
    # CREATE
    # ------------------------------------------------------------------

    def _classify_create(self, raw: RawStatement, cursor: WordCursor) -> ClassifiedStatement:
        cursor.expect("CREATE")
        or_replace = cursor.accept("OR", "REPLACE")
        while cursor.peek() is not None and cursor.peek().keyword in CREATE_MODIFIERS:
            cursor.pos += 1

        for keywords, kind, category in CREATE_OBJECTS:
            if cursor.accept(*keywords):
                break
        else:
            raise _ParseFailure("unknown CREATE object type")

        if kind == StatementKind.INDEX_CREATE:
            cursor.accept("CONCURRENTLY")
            cursor.accept("IF", "NOT", "EXISTS")
            index_name = cursor.identifier()
            cursor.expect("ON")
            schema, table = self._on_relation(cursor)
            return ClassifiedStatement(
                raw=raw,
                kind=kind,
                target=ObjectRef(schema, Category.RELATION, table),
                related=(ObjectRef(schema, Category.INDEX, index_name),),
            )

        if kind in (StatementKind.TRIGGER_CREATE, StatementKind.RULE_CREATE):
            name = cursor.identifier()
            if not cursor.skip_to("ON" if kind == StatementKind.TRIGGER_CREATE else "TO"):
                raise _ParseFailure("missing target relation")
            schema, table = self._on_relation(cursor)
            return ClassifiedStatement(
                raw=raw,
                kind=kind,
                target=ObjectRef(schema, category, name, parent=table),
                related=(ObjectRef(schema, Category.RELATION, table),),
            )

        if kind == StatementKind.POLICY_CREATE:
            cursor.identifier()
            cursor.expect("ON")
            schema, table = self._on_relation(cursor)
            return ClassifiedStatement(
                raw=raw, kind=kind, target=ObjectRef(schema, Category.RELATION, table)
            )

        cursor.accept("IF", "NOT", "EXISTS")
        target = self._object_ref(cursor, category)
        # Shell type: CREATE TYPE name; later completed by a full definition
        shell = kind == StatementKind.TYPE_CREATE and cursor.at_end()
        # pg_dump breaks view cycles with a dummy CREATE VIEW, then replaces it
        view_replacement = kind == StatementKind.VIEW_CREATE and or_replace
        return ClassifiedStatement(
            raw=raw, kind=kind, target=target, repeatable=shell or view_replacement
        )

    # ------------------------------------------------------------------
    # ALTER
    # ------------------------------------------------------------------

    def _classify_alter(self, raw: RawStatement, cursor: WordCursor) -> ClassifiedStatement:
        cursor.expect("ALTER")
        category = cursor.accept_object_type(OBJECT_TYPES)
        if category is None:
            raise _ParseFailure("unknown ALTER object type")
        cursor.accept("IF", "EXISTS")
        cursor.accept("ONLY")
        target = self._object_ref(cursor, category)

        if cursor.accept("OWNER", "TO"):
            return ClassifiedStatement(raw=raw, kind=StatementKind.OWNER_ALTER, target=target)

        if category == Category.PUBLICATION and cursor.accept("ADD", "TABLE"):
            schema, table = self._on_relation(cursor)
            head = cursor.peek()
            if head is not None and head.text == "," and not head.quoted:
                raise _ParseFailure("expected one table per ADD TABLE")
            return ClassifiedStatement(
                raw=raw,
                kind=StatementKind.PUBLICATION_TABLE_ADD,
                target=ObjectRef(schema, Category.PUBLICATION_TABLE, table, parent=target.name),
                related=(target, ObjectRef(schema, Category.RELATION, table)),
            )

        if cursor.accept("ADD", "CONSTRAINT"):
            if category not in (Category.RELATION, Category.FOREIGN_TABLE, Category.DOMAIN):
                raise _ParseFailure("ADD CONSTRAINT on unsupported object")
            constraint = cursor.identifier()
            related: tuple[ObjectRef, ...] = ()
            head = cursor.peek()
            if head is not None and head.keyword in ("PRIMARY", "UNIQUE", "EXCLUDE"):
                related = (ObjectRef(target.schema, Category.INDEX, constraint),)
            return ClassifiedStatement(
                raw=raw, kind=StatementKind.CONSTRAINT_ADD, target=target, related=related
            )

        if category in (Category.RELATION, Category.FOREIGN_TABLE):
            rewritten = self._trigger_or_rule_toggle(raw, cursor, target)
            if rewritten is not None:
                return rewritten

        if category == Category.SEQUENCE and cursor.skip_to("OWNED"):
            return ClassifiedStatement(
                raw=raw, kind=StatementKind.SEQUENCE_OWNED_BY, target=target
            )

        return ClassifiedStatement(raw=raw, kind=StatementKind.OBJECT_ALTER, target=target)

    def _trigger_or_rule_toggle(
        self,
        raw: RawStatement,
        cursor: WordCursor,
        table: ObjectRef,
    ) -> ClassifiedStatement | None:
        """ALTER TABLE t ENABLE|DISABLE [REPLICA|ALWAYS] TRIGGER|RULE name"""
        if not (cursor.accept("ENABLE") or cursor.accept("DISABLE")):
            return None
        if not cursor.accept("REPLICA"):
            cursor.accept("ALWAYS")
        if cursor.accept("TRIGGER"):
            category = Category.TRIGGER
        elif cursor.accept("RULE"):
            category = Category.RULE
        else:
            return None
        if cursor.at("ALL") or cursor.at("USER"):
            return None
        name = cursor.identifier()
        return ClassifiedStatement(
            raw=raw,
            kind=StatementKind.TRIGGER_ALTER,
            target=ObjectRef(table.schema, category, name, parent=table.name),
            related=(table,),
        )

    def _classify_default_privileges(
        self,
        raw: RawStatement,
        cursor: WordCursor,
    ) -> ClassifiedStatement:
        cursor.expect("ALTER", "DEFAULT", "PRIVILEGES")
        role = None
        schema = None
        while True:
            if cursor.accept("FOR", "ROLE") or cursor.accept("FOR", "USER"):
                role = cursor.identifier()
            elif cursor.accept("IN", "SCHEMA"):
                schema = cursor.identifier()
            else:
                break
        if not (cursor.at("GRANT") or cursor.at("REVOKE")):
            raise _ParseFailure("expected GRANT or REVOKE")
        if schema is not None:
            target = ObjectRef(None, Category.SCHEMA, schema)
        else:
            target = ObjectRef(None, Category.DEFAULT_PRIVILEGES, role or "public")
        return ClassifiedStatement(
            raw=raw, kind=StatementKind.DEFAULT_PRIVILEGES_ALTER, target=target
        )

    # ------------------------------------------------------------------
    # COMMENT ON
    # ------------------------------------------------------------------

    def _classify_comment(self, raw: RawStatement, cursor: WordCursor) -> ClassifiedStatement:
        cursor.expect("COMMENT", "ON")
        kind = StatementKind.COMMENT

        if cursor.accept("COLUMN"):
            parts = cursor.name_parts()
            if len(parts) == 2:
                schema, relation = self.default_schema, parts[0]
            elif len(parts) == 3:
                schema, relation = parts[0], parts[1]
            else:
                raise _ParseFailure("malformed column reference")
            return ClassifiedStatement(
                raw=raw, kind=kind, target=ObjectRef(schema, Category.RELATION, relation)
            )

        for keyword in ("CONSTRAINT", "TRIGGER", "RULE", "POLICY"):
            if cursor.accept(keyword):
                name = cursor.identifier()
                cursor.expect("ON")
                if keyword == "CONSTRAINT" and cursor.accept("DOMAIN"):
                    schema, domain = self._qualified(cursor.name_parts())
                    return ClassifiedStatement(
                        raw=raw, kind=kind, target=ObjectRef(schema, Category.DOMAIN, domain)
                    )
                schema, table = self._on_relation(cursor)
                if keyword in ("TRIGGER", "RULE"):
                    category = Category.TRIGGER if keyword == "TRIGGER" else Category.RULE
                    return ClassifiedStatement(
                        raw=raw,
                        kind=kind,
                        target=ObjectRef(schema, category, name, parent=table),
                        related=(ObjectRef(schema, Category.RELATION, table),),
                    )
                return ClassifiedStatement(
                    raw=raw, kind=kind, target=ObjectRef(schema, Category.RELATION, table)
                )

        category = cursor.accept_object_type(OBJECT_TYPES)
        if category is None:
            raise _ParseFailure("unknown COMMENT ON object type")
        target = self._object_ref(cursor, category)
        cursor.expect("IS")
        return ClassifiedStatement(raw=raw, kind=kind, target=target)

    # ------------------------------------------------------------------
    # GRANT / REVOKE
    # ------------------------------------------------------------------

    def _classify_acl(self, raw: RawStatement, cursor: WordCursor) -> ClassifiedStatement:
        kind = StatementKind.GRANT if cursor.at("GRANT") else StatementKind.REVOKE
        cursor.next()
        if not cursor.skip_to("ON"):
            raise _ParseFailure("role membership grants are not object privileges")
        head = cursor.peek()
        if (
            head is not None
            and head.keyword in UNSUPPORTED_GRANT_TARGETS
            and not cursor.at("FOREIGN", "TABLE")
        ):
            raise _ParseFailure(f"unsupported privilege target {head.keyword}")
        category = cursor.accept_object_type(OBJECT_TYPES)
        if category is None:
            # GRANT ... ON name defaults to a table
            category = Category.RELATION
        if category not in GRANT_OBJECT_TYPES:
            raise _ParseFailure(f"unsupported privilege target {category.name}")
        target = self._object_ref(cursor, category)
        return ClassifiedStatement(raw=raw, kind=kind, target=target)


def classify_statement(
    raw: RawStatement,
    config: SplitterConfig | None = None,
) -> ClassifiedStatement | IgnoredStatement:
    """
    Classify a single statement with a fresh classifier.

    Args:
        raw: Statement from the scanner
        config: Optional splitter configuration

    Returns:
        ClassifiedStatement or IgnoredStatement
    """
    return StatementClassifier(config).classify(raw)
