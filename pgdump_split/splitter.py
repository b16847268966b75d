"""
Splitter: scan -> classify -> aggregate -> resolve paths -> write.

Every stage completes before the next starts and any SplitError aborts the
whole run before output is written.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pgdump_split.archive_writer import write_archive, write_directory
from pgdump_split.config import SplitterConfig
from pgdump_split.object_aggregator import ObjectAggregator
from pgdump_split.object_model import IgnoredStatement, ObjectUnit, OutputTree
from pgdump_split.path_resolver import build_output_tree
from pgdump_split.statement_classifier import StatementClassifier
from pgdump_split.statement_scanner import decode_dump, read_dump_file, StatementScanner

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("t", "d")


@dataclass
class SplitResult:
    """Output tree plus counters of one run."""
    tree: OutputTree
    units: list[ObjectUnit]
    ignored: list[IgnoredStatement] = field(default_factory=list)
    statement_count: int = 0

    def summary(self) -> dict:
        return {
            "statements": self.statement_count,
            "ignored": len(self.ignored),
            "objects": len(self.units),
            "files": len(self.tree),
        }


def split_dump(text: str | bytes, config: SplitterConfig | None = None) -> SplitResult:
    """
    Split a plain-text schema dump into an output tree.

    Args:
        text: pg_dump output (str or UTF-8 bytes)
        config: Splitter configuration

    Returns:
        SplitResult

    Raises:
        SplitError: Any scan, classification, aggregation or path failure
    """
    config = config or SplitterConfig()
    scanner = StatementScanner(decode_dump(text))
    classifier = StatementClassifier(config)
    aggregator = ObjectAggregator(config)
    ignored: list[IgnoredStatement] = []

    count = 0
    for raw in scanner:
        count += 1
        result = classifier.classify(raw)
        if isinstance(result, IgnoredStatement):
            ignored.append(result)
        else:
            aggregator.add(result)

    units = aggregator.finalize()
    tree = build_output_tree(units, config, ignored=ignored)
    logger.info(
        "Split %d statements (%d ignored) into %d files", count, len(ignored), len(tree)
    )
    return SplitResult(tree=tree, units=units, ignored=ignored, statement_count=count)


def infer_format(output_path: Path) -> str:
    """Tar archive for .tar/.tar.gz/.tgz outputs, directory otherwise."""
    name = output_path.name
    if name.endswith((".tar", ".tar.gz", ".tgz")):
        return "t"
    return "d"


def split_dump_file(
    input_path: Path,
    output_path: Path,
    config: SplitterConfig | None = None,
    fmt: str | None = None,
) -> SplitResult:
    """
    Split a dump file and write the archive or directory.

    Args:
        input_path: Plain-text dump file
        output_path: Archive or directory path; must not exist yet
        config: Splitter configuration
        fmt: "t" (tar) or "d" (directory); inferred from output_path if None

    Returns:
        SplitResult
    """
    config = config or SplitterConfig()
    fmt = fmt or infer_format(output_path)
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"invalid output format {fmt}")
    if output_path.exists():
        raise FileExistsError(f"output {output_path} already exists")

    result = split_dump(read_dump_file(input_path), config)

    if fmt == "t":
        compression = config.compression
        if compression is None and output_path.name.endswith((".tar.gz", ".tgz")):
            compression = "gz"
        write_archive(result.tree, output_path, compression=compression)
    else:
        write_directory(result.tree, output_path)
    return result
