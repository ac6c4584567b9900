"""Blowfish-CFB64 cipher context shared by a keyring document and its items.

Wire format of every encrypted string (envelope ``db``, item
``encrypted_data`` and ``crypt.checkData``):

- plaintext is prefixed with N random salt characters (see ``salt.py``)
- the salted text is UTF-8 encoded and encrypted with Blowfish in CFB64
  mode, no padding, IV of eight zero bytes
- the ciphertext is base64 encoded

The key is the 43-character string from :func:`derive_key`, used as raw
UTF-8 bytes. Decryption strips the salt by deleting everything before the
first ``{``; this only works because every plaintext is a JSON object.
There is no authentication tag: a wrong key decrypts to garbage that fails
to parse, which is how a wrong password is detected.
"""
from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.decrepit.ciphers.algorithms import Blowfish
from cryptography.hazmat.primitives.ciphers import Cipher

try:
    from cryptography.hazmat.decrepit.ciphers.modes import CFB
except ImportError:
    # older cryptography releases keep CFB next to the modern modes
    from cryptography.hazmat.primitives.ciphers.modes import CFB

from keyringdesk.core.exceptions import CryptoError, FormatError, StateError
from .kdf import check_token_for, derive_key
from .salt import salt_string

logger = logging.getLogger(__name__)

ZERO_IV = bytes(8)
DB_SALT_LENGTH = 16
ITEM_SALT_LENGTH = 4
CHECK_SALT_LENGTH = 8

_SALT_PREFIX = re.compile(r"^[^{]*")


def strip_salt(text: str) -> str:
    """Drop the leading salt characters, keeping everything from the first ``{``.

    Text without any ``{`` is reduced to the empty string.
    """
    return _SALT_PREFIX.sub("", text, count=1)


class CipherContext:
    """Holds the derived key for one document and performs salted encrypt/decrypt."""

    def __init__(self, key: str):
        self._key: Optional[bytearray] = bytearray(key.encode("utf-8"))
        self._check_token: Optional[str] = check_token_for(key)

    @classmethod
    def init(cls, password: bytes | str, salt: str) -> "CipherContext":
        """Derive a context from ``password`` and the document ``salt``."""
        logger.debug("deriving cipher context")
        return cls(derive_key(password, salt))

    @property
    def wiped(self) -> bool:
        return self._key is None

    def _require_key(self) -> bytes:
        if self._key is None:
            raise StateError("Cipher context has been wiped")
        return bytes(self._key)

    def _run(self, data: bytes, encrypt: bool) -> bytes:
        # A fresh mode object per call: CFB state never carries over.
        key = self._require_key()
        try:
            cipher = Cipher(Blowfish(key), CFB(ZERO_IV))
            ctx = cipher.encryptor() if encrypt else cipher.decryptor()
            return ctx.update(data) + ctx.finalize()
        except (ValueError, UnsupportedAlgorithm) as exc:
            raise CryptoError(f"Blowfish/CFB64 unavailable or key rejected: {exc}") from exc

    def encrypt(self, plaintext: str, salt_len: int) -> str:
        """Prefix ``salt_len`` salt characters to ``plaintext``, encrypt, return base64."""
        salted = salt_string(salt_len, plaintext)
        crypted = self._run(salted.encode("utf-8"), encrypt=True)
        return base64.b64encode(crypted).decode("ascii")

    def decrypt(self, cryptext: str) -> str:
        """Decrypt a base64 string produced by :meth:`encrypt` and strip its salt."""
        try:
            crypted = base64.b64decode(cryptext, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise FormatError(f"Invalid base64 data: {exc}") from exc
        decrypted = self._run(crypted, encrypt=False)
        # Malformed sequences are replaced, not fatal; a wrong key then fails at JSON parsing.
        salted = decrypted.decode("utf-8", errors="replace")
        return strip_salt(salted)

    def check_token(self) -> str:
        """Return ``"{" + key + "}"``, the plaintext of this key's check data."""
        self._require_key()
        return self._check_token

    def wipe(self) -> None:
        """Overwrite the key material and make the context unusable."""
        try:
            if self._key is not None:
                for i in range(len(self._key)):
                    self._key[i] = 0
        finally:
            self._key = None
            self._check_token = None
