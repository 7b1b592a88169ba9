#!/usr/bin/env python3
"""
INSTANZA local dev runner.
Watches inbox/ and develops new photos into developed/ as they arrive.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

from instanza.locales import LANGUAGES, STYLES
from instanza.pipeline import InstanzaPipeline


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Watch inbox/ and develop new photos into instant prints."
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=Path.cwd(),
        help="Directory holding inbox/ and developed/ (default: current directory)",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=5,
        help="Seconds between inbox checks (default: 5)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run the pipeline once and exit (no watch loop)",
    )
    parser.add_argument("--style", choices=STYLES, default=None, help="Caption style")
    parser.add_argument("--language", choices=LANGUAGES, default=None, help="Caption language")
    parser.add_argument(
        "--concurrency",
        type=int,
        default=2,
        help="Photos developed in parallel (default: 2)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Caption and composite only (no entries saved, inbox untouched)",
    )
    parser.add_argument("--verbose", action="store_true", help="Show debug logging")
    args = parser.parse_args()

    repo_root = args.root.resolve()
    load_dotenv(repo_root / ".env")
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        pipeline = InstanzaPipeline(
            repo_root,
            style=args.style,
            language=args.language,
            max_concurrency=args.concurrency,
            dry_run=args.dry_run,
        )
    except Exception as exc:
        print(f"Failed to initialize pipeline: {exc}", file=sys.stderr)
        return 1

    try:
        if args.once:
            if pipeline.get_new_images():
                pipeline.run()
            else:
                print("No new images found in inbox/.")
        else:
            print(f"Watching inbox/ every {args.interval}s. Press Ctrl+C to stop.")
            while True:
                # A dry run never empties the inbox, so it only runs once
                if pipeline.get_new_images():
                    pipeline.run()
                    if args.dry_run:
                        break
                time.sleep(args.interval)
    except KeyboardInterrupt:
        print("\nStopping dev runner.")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
