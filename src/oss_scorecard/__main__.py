"""CLI entrypoint — python -m oss_scorecard."""

from __future__ import annotations

import argparse
import asyncio
import sys


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="oss-scorecard",
        description="Trust scoring for open-source packages hosted on GitHub or npm",
    )
    parser.add_argument(
        "url_file",
        help="File with one GitHub or npmjs.com package URL per line",
    )
    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Write NDJSON records to this file (default: stdout)",
    )
    args = parser.parse_args(argv)

    from oss_scorecard.collectors.urls import URLFileError
    from oss_scorecard.config import ConfigError, load_settings
    from oss_scorecard.log import configure_logging
    from oss_scorecard.pipeline import run

    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    logger = configure_logging(settings)

    try:
        asyncio.run(run(args.url_file, settings, logger, output=args.output))
    except URLFileError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
