"""Cron entry point for cleaning the responsive image cache."""

from __future__ import annotations

import argparse
import sys

from src.responsive_images.config import load_settings
from src.responsive_images.engine.cache_maintenance import PurgeSummary, purge_cache


def perform_purge(*, everything: bool, dry_run: bool) -> PurgeSummary:
    """Execute purge logic and return summary counters."""
    settings = load_settings()
    return purge_cache(settings, everything=everything, dry_run=dry_run)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove stale or orphaned image variants.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting files.")
    parser.add_argument("--all", dest="everything", action="store_true", help="Remove every cached variant.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or [])
    try:
        summary = perform_purge(everything=args.everything, dry_run=args.dry_run)
    except Exception as exc:
        print(f"purge failed: {exc}", file=sys.stderr)
        return 2

    if summary.dry_run:
        print(f"purge dry-run, scanned={summary.scanned}, obsolete={summary.removed}", file=sys.stdout)
    else:
        print(f"purge done, scanned={summary.scanned}, removed={summary.removed}", file=sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
