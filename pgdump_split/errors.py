"""
Error taxonomy for the splitting engine.

Every error is fatal for the whole run: the splitter never writes a partial
archive. Each error carries enough context (offset, line, statement excerpt,
object identity) to locate the offending DDL in the original dump.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pgdump_split.object_model import ObjectRef


EXCERPT_LENGTH = 80


def excerpt(text: str, limit: int = EXCERPT_LENGTH) -> str:
    """Return a one-line prefix of text for error messages."""
    flat = " ".join(text.split())
    if len(flat) > limit:
        return flat[:limit] + "..."
    return flat


class SplitError(Exception):
    """Base class for all splitting failures."""


class ScanError(SplitError):
    """Unterminated quote, comment or statement at end of input."""

    def __init__(self, message: str, offset: int, line: int, text: str = ""):
        self.offset = offset
        self.line = line
        self.excerpt = excerpt(text)
        detail = f"{message} at offset {offset} (line {line})"
        if self.excerpt:
            detail += f": {self.excerpt}"
        super().__init__(detail)


class ClassificationError(SplitError):
    """Statement kind is neither recognized nor allow-listed."""

    def __init__(self, message: str, offset: int, line: int, text: str):
        self.offset = offset
        self.line = line
        self.excerpt = excerpt(text)
        super().__init__(
            f"{message} at offset {offset} (line {line}): {self.excerpt}"
        )


class AggregationError(SplitError):
    """Dump consistency violation, e.g. a duplicate definition."""

    def __init__(self, message: str, ref: "ObjectRef | None" = None):
        self.ref = ref
        super().__init__(message)


class PathCollisionError(SplitError):
    """Two distinct objects resolve to the same output path."""

    def __init__(self, path: str, first: "ObjectRef", second: "ObjectRef"):
        self.path = path
        self.first = first
        self.second = second
        super().__init__(
            f"objects {first.display()} and {second.display()} "
            f"both resolve to {path}"
        )


class UnsafePathError(SplitError):
    """Output path that would leave the output root."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"unsafe output path {path!r}")
