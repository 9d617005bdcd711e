from __future__ import annotations
import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .config import MODE_AT_LEAST_ONE, MODE_EXACTLY_ONE, Config, ConfigError, find_config_file, load_config
from .logging_utils import configure_logging, get_logger
from .pipeline import check_paths
from .report import build_sarif, compute_run_report, export_sarif, render_text, save_run_report_json

logger = get_logger(__name__)


def build_config(args: argparse.Namespace) -> Config:
    """File config (explicit --config, else a discovered default) overridden by flags."""
    config_path = Path(args.config) if args.config else find_config_file(Path.cwd())
    config = load_config(config_path) if config_path else Config()
    if config_path:
        logger.info(f"Loaded config from {config_path}")

    if args.mode:
        config.mode = args.mode
    if args.max_paths is not None:
        config.max_paths = args.max_paths
    if args.max_depth is not None:
        config.max_depth = args.max_depth
    if args.constructor:
        config.constructor_names = list(args.constructor)
    if args.exclude:
        config.excludes = list(config.excludes) + list(args.exclude)
    config.verbose = args.verbose
    config.debug = args.debug
    return config


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sentinelpath",
        description="Check that every execution path of a Promise executor calls resolve or reject exactly once",
    )
    parser.add_argument("paths", nargs="+", help="Files or directories to check")
    parser.add_argument("--config", help="YAML or JSON config file (default: nearest .sentinelpath.{yaml,yml,json})")
    parser.add_argument("--format", choices=("text", "json", "sarif"), default="text", help="Output format")
    parser.add_argument("--out", help="Write output to this file instead of stdout")
    parser.add_argument("--mode", choices=(MODE_EXACTLY_ONE, MODE_AT_LEAST_ONE), help="Callback count policy")
    parser.add_argument("--max-paths", type=_positive_int, help="Give up on an executor after this many paths")
    parser.add_argument("--max-depth", type=_positive_int, help="Give up on an executor nested deeper than this")
    parser.add_argument("--constructor", action="append", help="Constructor name to check (repeatable)")
    parser.add_argument("--exclude", action="append", help="Glob of relative paths to skip (repeatable)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline progress")
    parser.add_argument("--debug", action="store_true", help="Log per-executor analysis details")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = make_parser().parse_args(argv)
    configure_logging(verbose=args.verbose, debug=args.debug)

    try:
        config = build_config(args)
    except ConfigError as e:
        print(f"sentinelpath: {e}", file=sys.stderr)
        return 2

    result = check_paths(args.paths, config)

    if args.out:
        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        if args.format == "json":
            save_run_report_json(compute_run_report(result, roots=list(args.paths)), str(out))
        elif args.format == "sarif":
            export_sarif(result, str(out))
        else:
            out.write_text(render_text(result) + "\n", encoding="utf-8")
        print(f"Wrote {args.format} report → {out}")
    elif args.format == "json":
        print(json.dumps(compute_run_report(result, roots=list(args.paths)), ensure_ascii=False, indent=2))
    elif args.format == "sarif":
        print(json.dumps(build_sarif(result), ensure_ascii=False, indent=2))
    else:
        print(render_text(result))

    return 1 if result.has_errors else 0


if __name__ == "__main__":
    sys.exit(main())
