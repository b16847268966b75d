"""
Path resolver: map objects to files and render the output tree.

Layout:
- <schema>/<CATEGORY-FOLDER>/<name>.sql   (TABLES, FUNCTIONS, TRIGGERS, ...)
- SCHEMAS/<name>.sql, EXTENSIONS/<name>.sql  (database-global objects)
- PUBLICATIONS/<pub>/<pub>.sql, PUBLICATIONS/<pub>/<schema>.<table>.sql
- index.sql  (optional; session settings plus \\ir for every file)

Overloaded routines and operators share their name's file. Any other pair
of distinct objects resolving to one path is a PathCollisionError.
"""

import logging

from pgdump_split.config import SplitterConfig
from pgdump_split.errors import PathCollisionError, UnsafePathError
from pgdump_split.object_model import (
    Category,
    ClassifiedStatement,
    IgnoredStatement,
    ObjectRef,
    ObjectUnit,
    OutputTree,
)

logger = logging.getLogger(__name__)

INDEX_FILE = "index.sql"
FILE_SUFFIX = ".sql"

# Characters that are not safe in a file name on common filesystems
_ESCAPED_CHARS = {"%", "/", "\\", "\x00"}
# Path segments with a meaning of their own
RESERVED_NAMES = frozenset({".", ".."})


def escape_name(name: str) -> str:
    """
    Make an identifier safe as a file base name, reversibly.

    '%' becomes '%25' so the escaping can be undone; '/', '\\', NUL and
    control characters become '%XX'. The names '.' and '..' are escaped
    whole. Everything else is kept verbatim, including upper case, spaces
    and non-ASCII characters.
    """
    if name in RESERVED_NAMES:
        return "".join(f"%{ord(ch):02X}" for ch in name)
    out: list[str] = []
    for ch in name:
        if ch in _ESCAPED_CHARS or ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"%{ord(ch):02X}")
        else:
            out.append(ch)
    return "".join(out)


def unescape_name(escaped: str) -> str:
    """Invert escape_name."""
    out: list[str] = []
    i = 0
    while i < len(escaped):
        if escaped[i] == "%" and _is_hex(escaped[i + 1:i + 3]):
            out.append(chr(int(escaped[i + 1:i + 3], 16)))
            i += 3
        else:
            out.append(escaped[i])
            i += 1
    return "".join(out)


def _is_hex(text: str) -> bool:
    return len(text) == 2 and all(c in "0123456789abcdefABCDEF" for c in text)


def check_relative_path(path: str) -> str:
    """
    Reject a path that is absolute or has an empty, '.' or '..' segment.

    Raises:
        UnsafePathError: Path would not stay inside the output root
    """
    if any(part in ("", ".", "..") for part in path.split("/")):
        raise UnsafePathError(path)
    return path


def resolve_path(ref: ObjectRef, config: SplitterConfig | None = None) -> str:
    """
    Return the relative file path of an object.

    Args:
        ref: Resolved object reference
        config: Splitter configuration (trigger path qualification)

    Returns:
        Relative path using '/' separators
    """
    config = config or SplitterConfig()
    if not ref.category.is_resolved:
        raise ValueError(f"Cannot resolve path of unresolved reference {ref.display()}")

    name = ref.name
    if (
        config.qualify_trigger_paths
        and ref.category in (Category.TRIGGER, Category.RULE)
        and ref.parent is not None
    ):
        name = f"{ref.parent}.{name}"
    filename = escape_name(name) + FILE_SUFFIX

    if ref.category == Category.PUBLICATION:
        folder = f"{Category.PUBLICATION.folder}/{escape_name(ref.name)}"
        return check_relative_path(f"{folder}/{filename}")
    if ref.category == Category.PUBLICATION_TABLE:
        folder = f"{Category.PUBLICATION.folder}/{escape_name(ref.parent or '')}"
        member = f"{escape_name(ref.schema or '')}.{filename}"
        return check_relative_path(f"{folder}/{member}")
    if ref.schema is None:
        return check_relative_path(f"{ref.category.folder}/{filename}")
    return check_relative_path(f"{escape_name(ref.schema)}/{ref.category.folder}/{filename}")


def render_statement(stmt: ClassifiedStatement, config: SplitterConfig) -> str:
    if config.strip_leading_comments:
        return stmt.raw.body
    return stmt.raw.text.strip()


def render_unit(unit: ObjectUnit, config: SplitterConfig | None = None) -> str:
    """Member statements joined by one blank line, no trailing newline."""
    config = config or SplitterConfig()
    return "\n\n".join(render_statement(s, config) for s in unit.statements)


def render_file(units: list[ObjectUnit], config: SplitterConfig | None = None) -> str:
    """Render the units sharing one file; ends with exactly one newline."""
    content = "\n\n".join(render_unit(u, config) for u in units)
    return content.rstrip() + "\n"


def _same_file_object(a: ObjectRef, b: ObjectRef) -> bool:
    """True for overloads of one routine or operator, which share a file."""
    return (
        a.category.is_overloadable
        and a.category == b.category
        and a.schema == b.schema
        and a.name == b.name
    )


def build_output_tree(
    units: list[ObjectUnit],
    config: SplitterConfig | None = None,
    ignored: list[IgnoredStatement] | None = None,
) -> OutputTree:
    """
    Place units into files and render the tree.

    Args:
        units: Finalized ObjectUnits (order of first appearance)
        config: Splitter configuration
        ignored: Allow-listed statements, used only for index.sql

    Returns:
        OutputTree

    Raises:
        PathCollisionError: Two distinct objects resolve to one path
    """
    config = config or SplitterConfig()
    by_path: dict[str, list[ObjectUnit]] = {}
    for unit in units:
        path = resolve_path(unit.ref, config)
        placed = by_path.setdefault(path, [])
        for other in placed:
            if not _same_file_object(other.ref, unit.ref):
                raise PathCollisionError(path, other.ref, unit.ref)
        placed.append(unit)

    tree = OutputTree()
    for path, placed in by_path.items():
        placed.sort(key=lambda u: u.ref.signature or "")
        tree.files[path] = render_file(placed, config)

    if config.write_index:
        tree.files[INDEX_FILE] = render_index(by_path, ignored or [])

    logger.info("Resolved %d objects into %d files", len(units), len(tree))
    return tree


def render_index(
    by_path: dict[str, list[ObjectUnit]],
    ignored: list[IgnoredStatement],
) -> str:
    """
    Render index.sql: session SET statements, then \\ir for every file.

    Files are included in order of the first statement of any of their
    units, which follows the dependency order pg_dump emitted.
    """
    lines: list[str] = []
    for item in ignored:
        body = item.raw.body
        if body.upper().startswith(("SET ", "SELECT ")) and body not in lines:
            lines.append(body)
    if lines:
        lines.append("")

    ordered = sorted(
        by_path.items(),
        key=lambda entry: (min(u.first_offset for u in entry[1]), entry[0].encode("utf-8")),
    )
    for path, _ in ordered:
        lines.append(f"\\ir {path}")
    return "\n".join(lines) + "\n"
