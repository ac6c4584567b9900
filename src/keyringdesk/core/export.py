"""Plaintext CSV export of a keyring. Every item gets unlocked on the way."""

from __future__ import annotations

import csv
import logging
from datetime import datetime
from typing import IO

from .ring import Ring

logger = logging.getLogger(__name__)

CSV_HEADER = ["title", "username", "password", "url", "category", "created", "viewed", "changed", "notes"]


def format_date(epoch_ms: int, include_time: bool = False) -> str:
    """Return the local-time ISO rendering of ``epoch_ms``."""
    fmt = "%Y-%m-%d %H:%M:%S %z" if include_time else "%Y-%m-%d"
    return datetime.fromtimestamp(epoch_ms / 1000).astimezone().strftime(fmt)


def export_csv(ring: Ring, fp: IO[str]) -> int:
    """Write every item of ``ring`` to ``fp``; returns the number of rows written."""
    logger.debug("export_csv()")
    writer = csv.writer(fp)
    writer.writerow(CSV_HEADER)
    count = 0
    for item in sorted(ring.items()):
        writer.writerow(
            [
                item.title,
                item.username,
                item.password,
                item.url,
                item.category,
                format_date(item.created, True),
                format_date(item.viewed, True),
                format_date(item.changed, True),
                item.notes,
            ]
        )
        count += 1
    return count
