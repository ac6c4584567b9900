"""Clipboard helpers for handing an item's password to another program.

Uses pyperclip for cross-platform clipboard access.
"""

from __future__ import annotations

import logging
import time

import pyperclip

from keyringdesk.core.models import Item

logger = logging.getLogger(__name__)


def copy_to_clipboard(text: str) -> None:
    """Copy text to the system clipboard.

    Raises:
        pyperclip.PyperclipException: If no clipboard mechanism is available.
    """
    pyperclip.copy(text)


def copy_password(item: Item) -> None:
    """Unlock ``item`` if needed and put its password on the clipboard."""
    logger.debug("copying password of %r", item.title)
    copy_to_clipboard(item.password)


def clear_clipboard_after(seconds: float, expected: str) -> bool:
    """Wait ``seconds`` and empty the clipboard if it still holds ``expected``.

    Returns True if the clipboard was cleared. Anything the user copied in
    the meantime is left alone.
    """
    time.sleep(seconds)
    if pyperclip.paste() != expected:
        return False
    pyperclip.copy("")
    return True
