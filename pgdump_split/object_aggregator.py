"""
Object aggregator: group classified statements into one unit per object.

Handles:
- Object index built during the forward pass (relations, indexes)
- Late resolution of RELATION / INDEX targets (forward references are legal)
- Duplicate-definition detection
- Canonical statement order within each unit

Canonical order is by role (configurable, default: definition, ownership,
alteration, comment, acl). Definitions and alterations keep source order
since replaying them depends on it; ownership, comments and ACLs are sorted
by text (REVOKE before GRANT) so their emission order in the dump never
shows up in the output.
"""

import logging
import re
from dataclasses import replace
from typing import Iterable

from pgdump_split.config import SplitterConfig
from pgdump_split.errors import AggregationError
from pgdump_split.object_model import (
    Category,
    ClassifiedStatement,
    ObjectRef,
    ObjectUnit,
    StatementKind,
    StatementRole,
)

logger = logging.getLogger(__name__)

ACL_VERB_RE = re.compile(r"\s(GRANT|REVOKE)\s", re.IGNORECASE)

SOURCE_ORDER_ROLES = frozenset({StatementRole.DEFINITION, StatementRole.ALTERATION})


def _is_revoke(stmt: ClassifiedStatement) -> bool:
    if stmt.kind == StatementKind.REVOKE:
        return True
    if stmt.kind == StatementKind.DEFAULT_PRIVILEGES_ALTER:
        match = ACL_VERB_RE.search(stmt.raw.body)
        return match is not None and match.group(1).upper() == "REVOKE"
    return False


def order_statements(
    statements: list[ClassifiedStatement],
    config: SplitterConfig | None = None,
) -> list[ClassifiedStatement]:
    """
    Sort a unit's statements into canonical order.

    Args:
        statements: Statements of one unit, in source order
        config: Splitter configuration (role order)

    Returns:
        New list in canonical order
    """
    config = config or SplitterConfig()

    def sort_key(item: tuple[int, ClassifiedStatement]) -> tuple:
        seq, stmt = item
        rank = config.role_rank(stmt.role)
        if stmt.role in SOURCE_ORDER_ROLES:
            return (rank, 0, "", seq)
        if stmt.role == StatementRole.ACL:
            return (rank, 0 if _is_revoke(stmt) else 1, stmt.raw.body, seq)
        return (rank, 0, stmt.raw.body, seq)

    return [stmt for _, stmt in sorted(enumerate(statements), key=sort_key)]


class ObjectAggregator:
    """
    Accumulates classified statements and builds ObjectUnits at end of input.

    Indexes:
    - relations[(schema, name)] -> concrete relation category
    - indexes[(schema, index_name)] -> ObjectRef of the owning relation
    """

    def __init__(self, config: SplitterConfig | None = None):
        self.config = config or SplitterConfig()
        self.statements: list[ClassifiedStatement] = []
        self.relations: dict[tuple[str | None, str], Category] = {}
        self.indexes: dict[tuple[str | None, str], ObjectRef] = {}

    def add(self, stmt: ClassifiedStatement) -> None:
        """Record one statement and update the object index."""
        self.statements.append(stmt)

        target = stmt.target
        if stmt.is_definition and target.category.is_relation:
            key = (target.schema, target.name)
            known = self.relations.get(key)
            if known is not None and known != target.category:
                raise AggregationError(
                    f"relation {target.schema}.{target.name} defined as both "
                    f"{known.name} and {target.category.name} "
                    f"(offset {stmt.raw.offset})",
                    ref=target,
                )
            self.relations[key] = target.category

        for related in stmt.related:
            if related.category == Category.INDEX:
                self.indexes[(related.schema, related.name)] = target

    def add_all(self, statements: Iterable[ClassifiedStatement]) -> None:
        for stmt in statements:
            self.add(stmt)

    def resolve(self, ref: ObjectRef) -> ObjectRef:
        """
        Resolve RELATION and INDEX pseudo categories to a concrete object.

        Args:
            ref: Possibly unresolved reference

        Returns:
            Resolved ObjectRef (unknown relations default to TABLE)

        Raises:
            AggregationError: Reference to an index that was never defined
        """
        if ref.category == Category.RELATION:
            category = self.relations.get((ref.schema, ref.name), Category.TABLE)
            return ref.with_category(category)
        if ref.category == Category.INDEX:
            owner = self.indexes.get((ref.schema, ref.name))
            if owner is None:
                raise AggregationError(
                    f"reference to unknown index {ref.schema}.{ref.name}", ref=ref
                )
            return self.resolve(owner)
        return ref

    def finalize(self) -> list[ObjectUnit]:
        """
        Build the ObjectUnits once all statements have been added.

        Returns:
            Units in order of first appearance, members in canonical order

        Raises:
            AggregationError: Duplicate definition or unknown index
        """
        units: dict[ObjectRef, ObjectUnit] = {}
        for stmt in self.statements:
            target = self.resolve(stmt.target)
            if target != stmt.target:
                stmt = replace(stmt, target=target)
            if target not in units:
                units[target] = ObjectUnit(ref=target)
            units[target].statements.append(stmt)

        for unit in units.values():
            self._check_duplicates(unit)
            unit.statements = order_statements(unit.statements, self.config)
            cross_refs = {
                self.resolve(r)
                for s in unit.statements
                for r in s.related
                if r.category != Category.INDEX
            }
            cross_refs.discard(unit.ref)
            unit.cross_refs = tuple(sorted(cross_refs, key=lambda r: r.display()))
            if not unit.definitions():
                logger.debug("No definition in dump for %s", unit.ref.display())

        logger.info(
            "Aggregated %d statements into %d objects", len(self.statements), len(units)
        )
        return list(units.values())

    def _check_duplicates(self, unit: ObjectUnit) -> None:
        """
        Allow at most one primary definition plus one repeatable one.

        The repeatable one is a shell type completed later, or the
        CREATE OR REPLACE VIEW that follows a placeholder CREATE VIEW.
        """
        definitions = unit.definitions()
        primary = [s for s in definitions if not s.repeatable]
        repeated = [s for s in definitions if s.repeatable]
        if len(primary) > 1 or len(repeated) > 1:
            offsets = ", ".join(str(s.raw.offset) for s in definitions)
            raise AggregationError(
                f"duplicate definition of {unit.ref.display()} at offsets {offsets}",
                ref=unit.ref,
            )


def aggregate_statements(
    statements: Iterable[ClassifiedStatement],
    config: SplitterConfig | None = None,
) -> list[ObjectUnit]:
    """
    Group classified statements into ObjectUnits.

    Args:
        statements: Classified statements in source order
        config: Splitter configuration

    Returns:
        List of finalized ObjectUnit
    """
    aggregator = ObjectAggregator(config)
    aggregator.add_all(statements)
    return aggregator.finalize()
