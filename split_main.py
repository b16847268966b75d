#!/usr/bin/env python3
"""
pgdump_split Main Script: split a schema-only dump into per-object files.

Run directly: python split_main.py
"""

import sys
from pathlib import Path

from pgdump_split.config import SplitterConfig
from pgdump_split.errors import SplitError
from pgdump_split.logging_setup import setup_logging
from pgdump_split.splitter import split_dump_file


# ============================================================
# Configuration - Modify these paths as needed
# ============================================================
PROJECT_ROOT = Path(__file__).parent

CONFIG = {
    "dump_file": PROJECT_ROOT / "sample_schema.sql",    # pg_dump --schema-only output
    "out_path": PROJECT_ROOT / "output" / "schema.tar",  # .tar / .tar.gz, or a directory
    "format": None,                                      # "t", "d" or None (infer from out_path)
    "log_level": "INFO",
    "splitter": {
        "default_schema": "public",
        "write_index": True,
        "qualify_trigger_paths": False,
    },
}


def main():
    """Main entry point."""
    print("=" * 60)
    print("pgdump_split: one file per schema object")
    print("=" * 60)

    setup_logging(CONFIG["log_level"])

    dump_path = Path(CONFIG["dump_file"])
    if not dump_path.is_file():
        print(f"Error: dump file not found: {dump_path}")
        return 1

    out_path = Path(CONFIG["out_path"])
    if out_path.exists():
        print(f"Error: output {out_path} already exists, remove it first")
        return 1
    out_path.parent.mkdir(parents=True, exist_ok=True)

    config = SplitterConfig.from_dict(CONFIG["splitter"])

    try:
        result = split_dump_file(dump_path, out_path, config=config, fmt=CONFIG["format"])
    except (SplitError, UnicodeDecodeError, OSError) as e:
        print(f"Error: {e}")
        return 1

    summary = result.summary()
    print(f"Read {summary['statements']} statements from {dump_path}")
    print(f"Ignored {summary['ignored']} session statements")
    print(f"Grouped into {summary['objects']} objects")

    print(f"\nOutput written to {out_path}")
    for path in result.tree.paths():
        print(f"  - {path}")

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)

    return 0


if __name__ == "__main__":
    sys.exit(main())
