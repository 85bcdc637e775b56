"""
Command-line interface for solvanity.

Usage:
    python -m solvanity                      # suffix "pump", runs until found
    python -m solvanity --prefix So1
    python -m solvanity --suffix pump --workers 8 --timeout 600
    python -m solvanity --prefix AB --suffix cd --output keys/vanity.json
"""

import argparse
import math
import sys
from datetime import datetime

from solvanity import __version__
from solvanity.errors import ConfigurationError, ExhaustionError, SearchTimeoutError
from solvanity.export import DEFAULT_KEYFILE, JsonKeyfileSink
from solvanity.generator import SearchConfig, SearchStats, default_worker_count, run_search
from solvanity.logging_config import setup_logging
from solvanity.matcher import estimate_difficulty
from solvanity.verify import verify_secret
from solvanity.worker import BATCH_SIZE

DEFAULT_SUFFIX = "pump"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_TIMEOUT = 2
EXIT_INTERRUPTED = 130


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solvanity",
        description="Solana Vanity Keypair Generator",
        epilog=(
            "Examples:\n"
            "  solvanity\n"
            "  solvanity --prefix So1\n"
            "  solvanity --suffix pump --workers 8 --timeout 600\n"
            "  solvanity --prefix AB --suffix cd --match-any\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version", action="version", version=f"solvanity {__version__}"
    )
    parser.add_argument(
        "--prefix", "-p", metavar="B58",
        help="Find a public key starting with this base-58 string",
    )
    parser.add_argument(
        "--suffix", "-s", metavar="B58",
        help=f"Find a public key ending with this base-58 string "
             f"(default: '{DEFAULT_SUFFIX}' when no pattern is given)",
    )
    parser.add_argument(
        "--match-any", action="store_true",
        help="Accept a key matching either prefix or suffix instead of both",
    )
    parser.add_argument(
        "--timeout", "-t", type=float, default=None, metavar="SECONDS",
        help="Give up after this many seconds (default: no limit)",
    )
    parser.add_argument(
        "--workers", "-w", type=int, default=0,
        help=f"Number of worker processes (default: auto, {default_worker_count()} here)",
    )
    parser.add_argument(
        "--batch-size", type=int, default=BATCH_SIZE,
        help=f"Attempts per worker between progress reports (default: {BATCH_SIZE})",
    )
    parser.add_argument(
        "--output", "-o", metavar="PATH", default=DEFAULT_KEYFILE,
        help=f"Keyfile path (default: {DEFAULT_KEYFILE})",
    )
    parser.add_argument(
        "--no-save", action="store_true",
        help="Do not write a keyfile",
    )
    parser.add_argument(
        "--no-verify", action="store_true",
        help="Skip re-deriving the public key from the found secret",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Show difficulty estimate without searching",
    )
    parser.add_argument(
        "--quiet", "-q", action="store_true",
        help="Minimal output (just the result public key)",
    )
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-dir", metavar="DIR", default=None,
        help="Also write daily-rotated log files to this directory",
    )

    return parser


def format_time(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        return f"{seconds / 60:.1f}m"
    elif seconds < 86400:
        return f"{seconds / 3600:.1f}h"
    else:
        return f"{seconds / 86400:.1f}d"


def format_rate(rate: float) -> str:
    if rate < 1000:
        return f"{rate:.0f}"
    elif rate < 1_000_000:
        return f"{rate / 1000:.1f}K"
    else:
        return f"{rate / 1_000_000:.2f}M"


def progress_callback(stats: SearchStats, quiet: bool = False) -> None:
    if quiet:
        return
    sys.stdout.write(
        f"\r[{datetime.now().isoformat(timespec='seconds')}] "
        f"Total: {stats.total_attempts:,} | "
        f"Overall: {stats.rate:,.2f}/s  "
    )
    sys.stdout.flush()


def config_from_args(args: argparse.Namespace) -> SearchConfig:
    prefix = args.prefix or ""
    suffix = args.suffix
    if suffix is None:
        suffix = "" if prefix else DEFAULT_SUFFIX
    return SearchConfig(
        prefix=prefix,
        suffix=suffix,
        timeout_seconds=args.timeout,
        worker_count=args.workers if args.workers else None,
        require_all=not args.match_any,
    )


def main(argv: list[str] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_dir=args.log_dir)

    try:
        config = config_from_args(args).validate()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    pattern = config.pattern
    difficulty = estimate_difficulty(pattern)

    if not args.quiet:
        print(f"solvanity v{__version__}")
        print(f"  Pattern:    {pattern.describe()}")
        print(f"  Workers:    {config.workers}")
        if config.timeout_seconds and math.isfinite(config.timeout_seconds):
            print(f"  Timeout:    {format_time(config.timeout_seconds)}")
        if difficulty["expected_attempts"]:
            print(f"  Expected:   ~{difficulty['expected_attempts']:,} attempts")
        print(f"  Difficulty: {difficulty['difficulty_description']}")
        print()

    if args.dry_run:
        return EXIT_OK

    sink = None if args.no_save else JsonKeyfileSink(args.output)

    if not args.quiet:
        print("Searching...")

    try:
        found = run_search(
            config,
            sink=sink,
            on_progress=lambda stats: progress_callback(stats, args.quiet),
            batch_size=args.batch_size,
        )
    except ConfigurationError as e:
        print(f"\nError: {e}", file=sys.stderr)
        return EXIT_ERROR
    except SearchTimeoutError as e:
        print(f"\nError: {e}", file=sys.stderr)
        return EXIT_TIMEOUT
    except ExhaustionError as e:
        print(f"\nError: {e}", file=sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        print("\nSearch interrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED

    if args.quiet:
        print(found.public_identifier)
        return EXIT_OK

    print(f"\n{'=' * 60}")
    print(f"  MATCH FOUND")
    print(f"  Public Key:     {found.public_identifier}")
    print(f"  Secret Key:     {found.secret_base58}")
    print(f"  Time:           {format_time(found.elapsed)}")
    print(f"  Keys Checked:   {found.total_attempts:,}")
    print(f"  Rate:           {format_rate(found.rate)}/sec")
    print(f"{'=' * 60}")

    if found.keyfile:
        print(f"\n  Saved keyfile:  {found.keyfile}")

    if not args.no_verify:
        v = verify_secret(found.secret_material, found.public_identifier, found.keyfile)
        if v["error"]:
            print(f"\n  Verification error: {v['error']}")
        else:
            key_ok = "PASS" if v["public_key_match"] and v["identifier_match"] else "FAIL"
            print(f"\n  Verification:")
            print(f"    Public key:   {key_ok}")
            if v["keyfile_match"] is not None:
                print(f"    Keyfile:      {'PASS' if v['keyfile_match'] else 'FAIL'}")

    return EXIT_OK
