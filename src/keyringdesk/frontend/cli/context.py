"""Small helper to build the runtime configuration for the console front end."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import getpass
import logging
import os

from keyringdesk.security.session import DEFAULT_TTL_SECONDS

DEFAULT_DB = "keyring.json"


@dataclass
class AppContext:
    """Settings the commands need."""

    db: str
    password: Optional[str] = None
    log_level: int = logging.WARNING
    idle_timeout: int = DEFAULT_TTL_SECONDS

    def get_password(self, prompt: str = "Keyring password: ") -> str:
        # An environment-supplied password wins over prompting.
        if self.password is not None:
            return self.password
        return getpass.getpass(prompt)


def _log_level(name: Optional[str]) -> int:
    if not name:
        return logging.WARNING
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.WARNING


def build_context(
    db: Optional[str] = None,
    verbose: bool = False,
) -> AppContext:
    """
    Collect settings from arguments and the environment.

    - ``KEYRINGDESK_DB``: database location (file, ``-`` or ``http...`` URL),
      default ``keyring.json``; the ``db`` argument takes precedence.
    - ``KEYRINGDESK_PASSWORD``: password for non-interactive use; when unset
      commands prompt with getpass.
    - ``KEYRINGDESK_LOG_LEVEL``: logging level name, default WARNING;
      ``verbose`` forces DEBUG.
    - ``KEYRINGDESK_IDLE_TIMEOUT``: idle-lock timeout in seconds.
    """
    timeout_raw = os.getenv("KEYRINGDESK_IDLE_TIMEOUT")
    try:
        idle_timeout = int(timeout_raw) if timeout_raw else DEFAULT_TTL_SECONDS
    except ValueError:
        idle_timeout = DEFAULT_TTL_SECONDS

    return AppContext(
        db=db or os.getenv("KEYRINGDESK_DB") or DEFAULT_DB,
        password=os.getenv("KEYRINGDESK_PASSWORD"),
        log_level=logging.DEBUG if verbose else _log_level(os.getenv("KEYRINGDESK_LOG_LEVEL")),
        idle_timeout=idle_timeout,
    )
