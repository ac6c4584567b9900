"""Base class for importers that turn a foreign export into keyring items."""

from __future__ import annotations

import logging
from typing import List, Optional

from keyringdesk.core.exceptions import ConversionError
from keyringdesk.core.ring import Ring
from keyringdesk.network.transport import save_ring

logger = logging.getLogger(__name__)

CONVERTER_TYPES = ("csv",)


class Converter:
    # Does the input file need its own password?
    needs_input_password = False

    def __init__(self):
        self.errors: List[str] = []

    def convert(self, in_file: str, ring: Ring, in_password: Optional[str] = None) -> int:
        """Add the items found in ``in_file`` to ``ring``; returns how many were added."""
        raise NotImplementedError

    def export(
        self,
        out_password: str,
        in_password: Optional[str],
        in_file: str,
        out_file: str,
    ) -> int:
        """Convert ``in_file`` into a new keyring protected by ``out_password`` and save it."""
        ring = Ring(out_password)
        count = self.convert(in_file, ring, in_password)
        save_ring(ring, out_file)
        logger.info("%d items converted and written to %s", count, out_file)
        return count

    def log_error(self, message: str) -> None:
        self.errors.append(message)
        logger.warning(message)


def get_converter(type_name: str) -> Converter:
    """Return a converter for ``type_name`` (case-insensitive)."""
    if type_name.lower() == "csv":
        from .csv_converter import CSVConverter

        return CSVConverter()
    raise ConversionError(f'Invalid type: "{type_name}".')
