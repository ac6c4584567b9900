"""In-memory session holding one unlocked keyring with idle auto-lock.

The session keeps a single validated :class:`Ring` and an expiry timestamp.
get_ring() returns the ring while the session is unlocked and not expired;
otherwise it raises StateError. Locking wipes the ring's key material and
drops it, so the next unlock is a fresh load from the source.
"""
from __future__ import annotations

import logging
import time
from typing import Optional

from keyringdesk.core.exceptions import StateError
from keyringdesk.core.ring import Ring
from keyringdesk.network.transport import load_ring, save_ring

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


class SessionManager:
    def __init__(self, source: str, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.source = source
        self.ttl_seconds = ttl_seconds
        self._ring: Optional[Ring] = None
        self._expires_at: Optional[float] = None

    @property
    def unlocked(self) -> bool:
        return self._ring is not None

    def unlock(self, password: bytes | str) -> bool:
        """Load the keyring from ``source`` and validate ``password``.

        Returns False (and stays locked) if the password is wrong.
        """
        ring = load_ring(self.source)
        if not ring.validate_password(password):
            ring.wipe()
            return False
        self.unlock_with_ring(ring)
        return True

    def unlock_with_ring(self, ring: Ring) -> None:
        """Adopt an already-validated ring, e.g. one that was just created."""
        if self._ring is not None and self._ring is not ring:
            self._ring.wipe()
        self._ring = ring
        self._expires_at = time.time() + float(self.ttl_seconds)

    def get_ring(self) -> Ring:
        """Return the unlocked ring or raise if locked/expired. Access counts as activity."""
        if self._ring is None:
            raise StateError("Session is locked")
        if self._expires_at is not None and time.time() > self._expires_at:
            # auto-lock on expiry
            self.lock()
            raise StateError("Session expired and was locked")
        ring = self._ring
        self._expires_at = time.time() + float(self.ttl_seconds)
        return ring

    def extend(self, extra_seconds: int) -> None:
        """Extend session TTL by extra_seconds if unlocked."""
        if self._ring is None:
            raise StateError("Session is locked")
        self._expires_at = (self._expires_at or time.time()) + float(extra_seconds)

    def save(self) -> None:
        """Write the unlocked ring back to ``source``."""
        save_ring(self.get_ring(), self.source)

    def lock(self) -> None:
        """Wipe the ring's key material and forget it."""
        logger.debug("locking session")
        try:
            if self._ring is not None:
                self._ring.wipe()
        finally:
            self._ring = None
            self._expires_at = None
