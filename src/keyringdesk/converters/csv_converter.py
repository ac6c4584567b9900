"""
Import a CSV file with a header row.

Recognised labels (case-insensitive): name, category, account, password,
note* and url. Any other column is ignored. name, account and password are
mandatory. Every imported item is dated to the moment of the import.
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Dict, List, Optional

from keyringdesk.core.exceptions import ConversionError
from keyringdesk.core.models import now_ms
from keyringdesk.core.ring import Ring
from keyringdesk.network.transport import read_text
from .base import Converter

logger = logging.getLogger(__name__)

MANDATORY_LABELS = ("name", "account", "password")


def _column_indexes(labels: List[str]) -> Dict[str, int]:
    indexes: Dict[str, int] = {}
    for idx, label in enumerate(labels):
        label = label.strip().lower()
        if label in ("name", "category", "account", "password", "url"):
            indexes[label] = idx
        elif label.startswith("note"):
            indexes["notes"] = idx
    return indexes


class CSVConverter(Converter):
    needs_input_password = False

    def convert(self, in_file: str, ring: Ring, in_password: Optional[str] = None) -> int:
        rows = list(csv.reader(io.StringIO(read_text(in_file), newline="")))
        if not rows:
            raise ConversionError("Input file is empty!")

        cols = _column_indexes(rows[0])
        if any(label not in cols for label in MANDATORY_LABELS):
            raise ConversionError(
                "Input file format is invalid. Must contain header row with labels "
                "name, category, account, password, notes. Any other labels will be "
                "ignored. The name, account, and password fields are mandatory, "
                "others are optional."
            )

        def field(entry: List[str], label: str, default: str = "") -> str:
            idx = cols.get(label)
            if idx is None or idx >= len(entry):
                return default
            return entry[idx]

        # Pretend that each item was created when it was imported.
        stamp = now_ms()
        imported = 0
        for number, entry in enumerate(rows[1:], start=1):
            if not entry:
                continue
            name = field(entry, "name")
            if not name:
                self.log_error(f"Entry #{number} has no name, skipping.")
                continue
            if ring.get_item(name) is not None:
                self.log_error(f"Entry #{number} - Duplicate entry, skipping: [{name}].")
                continue
            if cols["account"] >= len(entry) or cols["password"] >= len(entry):
                self.log_error(
                    f"Entry #{number} is invalid: account or password not found. Entry: [{name}]."
                )
                continue
            ring.new_item(
                name,
                username=field(entry, "account"),
                password=field(entry, "password"),
                url=field(entry, "url"),
                notes=field(entry, "notes"),
                category=field(entry, "category", "Unfiled") or "Unfiled",
                created=stamp,
                viewed=stamp,
                changed=stamp,
            )
            imported += 1

        logger.debug("imported %d of %d rows", imported, len(rows) - 1)
        return imported
