"""
Object model: statements, object identities and aggregated units.

Flow of data through the engine:
- RawStatement: verbatim slice of the dump (scanner output)
- ClassifiedStatement: RawStatement + kind, role and target ObjectRef
- ObjectUnit: all statements of one ObjectRef in canonical order
- OutputTree: relative path -> rendered file content
"""

from dataclasses import dataclass, field
from enum import Enum


class Category(Enum):
    """Object category; the value is the folder name in the output tree."""
    SCHEMA = "SCHEMAS"
    EXTENSION = "EXTENSIONS"
    TYPE = "TYPES"
    DOMAIN = "DOMAINS"
    FUNCTION = "FUNCTIONS"
    PROCEDURE = "PROCEDURES"
    AGGREGATE = "AGGREGATES"
    SEQUENCE = "SEQUENCES"
    TABLE = "TABLES"
    FOREIGN_TABLE = "FOREIGN_TABLES"
    VIEW = "VIEWS"
    MATERIALIZED_VIEW = "MATERIALIZED_VIEWS"
    TRIGGER = "TRIGGERS"
    RULE = "RULES"
    OPERATOR = "OPERATORS"
    PUBLICATION = "PUBLICATIONS"
    # Table membership of a publication, filed below PUBLICATIONS/<name>/
    PUBLICATION_TABLE = "PUBLICATION_TABLES"
    DEFAULT_PRIVILEGES = "DEFAULT_PRIVILEGES"
    # Unresolved: decided by the aggregator once all definitions are known
    RELATION = "RELATION"
    INDEX = "INDEX"

    @property
    def folder(self) -> str:
        return self.value

    @property
    def is_resolved(self) -> bool:
        return self not in (Category.RELATION, Category.INDEX)

    @property
    def is_routine(self) -> bool:
        return self in ROUTINE_CATEGORIES

    @property
    def is_relation(self) -> bool:
        """True for pg_class objects sharing one namespace per schema."""
        return self in RELATION_CATEGORIES

    @property
    def is_overloadable(self) -> bool:
        """True when objects of one name differ by argument types."""
        return self in OVERLOADABLE_CATEGORIES


ROUTINE_CATEGORIES = frozenset({
    Category.FUNCTION,
    Category.PROCEDURE,
    Category.AGGREGATE,
})

OVERLOADABLE_CATEGORIES = ROUTINE_CATEGORIES | {Category.OPERATOR}

RELATION_CATEGORIES = frozenset({
    Category.TABLE,
    Category.FOREIGN_TABLE,
    Category.VIEW,
    Category.MATERIALIZED_VIEW,
    Category.SEQUENCE,
})


class StatementRole(Enum):
    """Role of a statement within its object's unit."""
    DEFINITION = "definition"
    OWNERSHIP = "ownership"
    ALTERATION = "alteration"   # constraints, defaults, indexes, OWNED BY ...
    COMMENT = "comment"
    ACL = "acl"


DEFAULT_ROLE_ORDER: tuple[StatementRole, ...] = (
    StatementRole.DEFINITION,
    StatementRole.OWNERSHIP,
    StatementRole.ALTERATION,
    StatementRole.COMMENT,
    StatementRole.ACL,
)


class StatementKind(Enum):
    """Closed set of DDL statement shapes emitted by pg_dump."""
    SCHEMA_CREATE = "schema_create"
    EXTENSION_CREATE = "extension_create"
    TYPE_CREATE = "type_create"
    DOMAIN_CREATE = "domain_create"
    FUNCTION_CREATE = "function_create"
    PROCEDURE_CREATE = "procedure_create"
    AGGREGATE_CREATE = "aggregate_create"
    SEQUENCE_CREATE = "sequence_create"
    TABLE_CREATE = "table_create"
    FOREIGN_TABLE_CREATE = "foreign_table_create"
    VIEW_CREATE = "view_create"
    MATERIALIZED_VIEW_CREATE = "materialized_view_create"
    TRIGGER_CREATE = "trigger_create"
    RULE_CREATE = "rule_create"
    OPERATOR_CREATE = "operator_create"
    PUBLICATION_CREATE = "publication_create"
    PUBLICATION_TABLE_ADD = "publication_table_add"
    INDEX_CREATE = "index_create"
    POLICY_CREATE = "policy_create"
    OWNER_ALTER = "owner_alter"
    CONSTRAINT_ADD = "constraint_add"
    SEQUENCE_OWNED_BY = "sequence_owned_by"
    OBJECT_ALTER = "object_alter"
    TRIGGER_ALTER = "trigger_alter"
    COMMENT = "comment"
    GRANT = "grant"
    REVOKE = "revoke"
    DEFAULT_PRIVILEGES_ALTER = "default_privileges_alter"

    @property
    def role(self) -> StatementRole:
        return KIND_ROLES[self]


# Kinds not listed here are definitions
KIND_ROLES: dict[StatementKind, StatementRole] = {
    kind: StatementRole.DEFINITION for kind in StatementKind
}
KIND_ROLES.update({
    StatementKind.OWNER_ALTER: StatementRole.OWNERSHIP,
    StatementKind.CONSTRAINT_ADD: StatementRole.ALTERATION,
    StatementKind.SEQUENCE_OWNED_BY: StatementRole.ALTERATION,
    StatementKind.OBJECT_ALTER: StatementRole.ALTERATION,
    StatementKind.TRIGGER_ALTER: StatementRole.ALTERATION,
    StatementKind.INDEX_CREATE: StatementRole.ALTERATION,
    StatementKind.POLICY_CREATE: StatementRole.ALTERATION,
    StatementKind.COMMENT: StatementRole.COMMENT,
    StatementKind.GRANT: StatementRole.ACL,
    StatementKind.REVOKE: StatementRole.ACL,
    StatementKind.DEFAULT_PRIVILEGES_ALTER: StatementRole.ACL,
})


@dataclass(frozen=True)
class ObjectRef:
    """
    Identity key of a database object.

    Two statements with equal ObjectRef belong to the same output unit.
    - schema: None for database-global objects (schemas, extensions, publications)
    - signature: normalized argument list for routines and operators (overloads differ)
    - parent: owning relation for triggers and rules, publication for its tables
    """
    schema: str | None
    category: Category
    name: str
    signature: str | None = None
    parent: str | None = None

    def with_category(self, category: Category) -> "ObjectRef":
        return ObjectRef(
            schema=self.schema,
            category=category,
            name=self.name,
            signature=self.signature,
            parent=self.parent,
        )

    def display(self) -> str:
        """Human readable form used in logs and error messages."""
        name = self.name
        if self.signature is not None:
            name += f"({self.signature})"
        if self.schema is not None:
            name = f"{self.schema}.{name}"
        if self.parent is not None:
            name += f" ON {self.parent}"
        return f"{self.category.name} {name}"


@dataclass(frozen=True)
class RawStatement:
    """
    One top-level statement, verbatim.

    text includes leading comments and the terminating semicolon;
    body_start is the index in text of the first character that is
    neither whitespace nor comment.
    """
    text: str
    offset: int
    line: int
    body_start: int = 0

    @property
    def body(self) -> str:
        """Statement text without leading comments or surrounding whitespace."""
        return self.text[self.body_start:].strip()


@dataclass(frozen=True)
class ClassifiedStatement:
    """A RawStatement with its kind and the object it belongs to."""
    raw: RawStatement
    kind: StatementKind
    target: ObjectRef
    related: tuple[ObjectRef, ...] = ()
    repeatable: bool = False  # shell types, CREATE OR REPLACE VIEW

    @property
    def role(self) -> StatementRole:
        return self.kind.role

    @property
    def is_definition(self) -> bool:
        return self.role == StatementRole.DEFINITION


@dataclass(frozen=True)
class IgnoredStatement:
    """Marker for allow-listed session statements (SET, set_config, ...)."""
    raw: RawStatement
    reason: str


@dataclass
class ObjectUnit:
    """All statements of one object, in canonical order once finalized."""
    ref: ObjectRef
    statements: list[ClassifiedStatement] = field(default_factory=list)
    cross_refs: tuple[ObjectRef, ...] = ()

    @property
    def first_offset(self) -> int:
        return min(s.raw.offset for s in self.statements)

    def definitions(self) -> list[ClassifiedStatement]:
        return [s for s in self.statements if s.is_definition]


@dataclass
class OutputTree:
    """Relative path -> rendered file content."""
    files: dict[str, str] = field(default_factory=dict)

    def paths(self) -> list[str]:
        """Paths in byte-wise order of their UTF-8 encoding."""
        return sorted(self.files, key=lambda p: p.encode("utf-8"))

    def items(self) -> list[tuple[str, str]]:
        return [(p, self.files[p]) for p in self.paths()]

    def __len__(self) -> int:
        return len(self.files)

    def __contains__(self, path: str) -> bool:
        return path in self.files

    def __getitem__(self, path: str) -> str:
        return self.files[path]
