"""
CLI entry point for splitting a schema-only pg_dump into per-object files.
"""

import argparse
import sys
from pathlib import Path

from pgdump_split.config import SplitterConfig, load_config
from pgdump_split.errors import SplitError
from pgdump_split.logging_setup import setup_logging
from pgdump_split.splitter import split_dump_file


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="pgdump-split",
        description="Split a plain-text schema-only pg_dump into one file per object",
    )

    parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Plain-text dump produced by pg_dump --schema-only",
    )
    parser.add_argument(
        "--output",
        type=Path,
        required=True,
        help="Output archive (.tar, .tar.gz) or directory; must not exist",
    )
    parser.add_argument(
        "--format",
        type=str,
        default=None,
        choices=["t", "d"],
        help="Output format: t (tar archive) or d (directory); "
             "default is a tar archive if OUTPUT ends in .tar, .tar.gz or .tgz",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file with splitter settings",
    )
    parser.add_argument(
        "--compress",
        action="store_true",
        help="gzip the tar archive",
    )
    parser.add_argument(
        "--write-index",
        action="store_true",
        help="Write index.sql with \\ir includes for every file",
    )
    parser.add_argument(
        "--qualify-trigger-paths",
        action="store_true",
        help="Name trigger and rule files <table>.<name>.sql",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> SplitterConfig:
    """Merge the config file (if any) with command line switches."""
    config = load_config(args.config) if args.config else SplitterConfig()
    if args.compress:
        config.compression = "gz"
    if args.write_index:
        config.write_index = True
    if args.qualify_trigger_paths:
        config.qualify_trigger_paths = True
    return config


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    # Validate inputs
    if not args.input.is_file():
        print(f"Error: input file does not exist: {args.input}", file=sys.stderr)
        return 1
    if args.output.exists():
        print(f"Error: output {args.output} already exists", file=sys.stderr)
        return 1
    if args.config is not None and not args.config.is_file():
        print(f"Error: config file does not exist: {args.config}", file=sys.stderr)
        return 1

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"Error: invalid config: {e}", file=sys.stderr)
        return 1

    try:
        result = split_dump_file(args.input, args.output, config=config, fmt=args.format)
    except SplitError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as e:
        print(f"Error: input is not valid UTF-8: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    summary = result.summary()
    print(f"Read {summary['statements']} statements ({summary['ignored']} session statements ignored)")
    print(f"Wrote {summary['files']} files for {summary['objects']} objects to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
