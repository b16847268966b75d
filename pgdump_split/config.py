"""
Splitter configuration: dataclass with defaults plus a JSON loader.

Example config.json:
    {
        "default_schema": "public",
        "role_order": ["definition", "ownership", "alteration", "comment", "acl"],
        "qualify_trigger_paths": false,
        "write_index": true,
        "compression": "gz"
    }
"""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path

from pgdump_split.object_model import DEFAULT_ROLE_ORDER, StatementRole


# Session statements dropped without a target object.
# Matched case-insensitively against the start of the statement body.
DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    r"SET\s",
    r"SELECT\s+pg_catalog\.set_config\s*\(",
    r"\\(?:connect|restrict|unrestrict)\b",  # psql meta-commands
)

COMPRESSIONS = (None, "gz")


@dataclass
class SplitterConfig:
    """Tunable policy of the splitting engine."""
    default_schema: str = "public"
    role_order: tuple[StatementRole, ...] = DEFAULT_ROLE_ORDER
    ignore_patterns: tuple[str, ...] = DEFAULT_IGNORE_PATTERNS
    strip_leading_comments: bool = True
    qualify_trigger_paths: bool = False
    write_index: bool = False
    compression: str | None = None
    extra_ignore_patterns: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        self.role_order = tuple(self.role_order)
        if sorted(r.value for r in self.role_order) != sorted(r.value for r in StatementRole):
            raise ValueError(
                "role_order must list every statement role exactly once, got "
                f"{[r.value for r in self.role_order]}"
            )
        if self.compression not in COMPRESSIONS:
            raise ValueError(f"Unsupported compression: {self.compression!r}")
        self.ignore_patterns = tuple(self.ignore_patterns) + tuple(self.extra_ignore_patterns)
        self.extra_ignore_patterns = ()

    def role_rank(self, role: StatementRole) -> int:
        """Position of role in the canonical statement order."""
        return self.role_order.index(role)

    @classmethod
    def from_dict(cls, data: dict) -> "SplitterConfig":
        """
        Build a config from a plain dict (e.g. parsed JSON).

        Args:
            data: Mapping of field name to value; role names as strings

        Returns:
            SplitterConfig

        Raises:
            ValueError: Unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {unknown}")

        kwargs = dict(data)
        if "role_order" in kwargs:
            try:
                kwargs["role_order"] = tuple(StatementRole(r) for r in kwargs["role_order"])
            except ValueError as e:
                raise ValueError(f"Invalid role_order: {e}") from e
        for key in ("ignore_patterns", "extra_ignore_patterns"):
            if key in kwargs:
                kwargs[key] = tuple(kwargs[key])
        return cls(**kwargs)


def load_config(config_path: Path) -> SplitterConfig:
    """
    Load splitter configuration from a JSON file.

    Args:
        config_path: Path to config JSON

    Returns:
        SplitterConfig
    """
    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config root must be an object: {config_path}")
    return SplitterConfig.from_dict(data)
