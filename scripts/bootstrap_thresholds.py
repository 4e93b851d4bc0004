#!/usr/bin/env python3
"""Seed the global default alert thresholds that are missing."""

from __future__ import annotations

import argparse
import asyncio
import logging

from nephrowatch.database import bootstrap_thresholds, close_db
from nephrowatch.logging import configure_logging

logger = logging.getLogger("nephrowatch.scripts.bootstrap_thresholds")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Create the global creatinine and blood pressure thresholds. "
            "Metrics that already have a global row are left as configured."
        )
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level.",
    )
    return parser.parse_args()


async def _run() -> int:
    try:
        return await bootstrap_thresholds()
    finally:
        await close_db()


def main() -> int:
    args = _parse_args()
    configure_logging()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    created = asyncio.run(_run())
    if created:
        logger.info("Created %d default threshold(s)", created)
    else:
        logger.info("Thresholds already configured; nothing to do")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
