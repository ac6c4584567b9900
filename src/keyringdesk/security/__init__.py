"""Security package of keyringdesk.

Provides the pieces needed to read and write Keyring for webOS documents:
- random salt strings from the Keyring alphabet
- the SHA-256/base64 key derivation used by the phone client
- a Blowfish-CFB64 cipher context with salted encrypt/decrypt

The idle-lock session lives in :mod:`keyringdesk.security.session`.
"""

from .salt import salt_string, SALT_ALPHABET
from .kdf import derive_key, check_token_for
from .crypto import (
    CipherContext,
    strip_salt,
    DB_SALT_LENGTH,
    ITEM_SALT_LENGTH,
    CHECK_SALT_LENGTH,
)

__all__ = [
    "salt_string",
    "SALT_ALPHABET",
    "derive_key",
    "check_token_for",
    "CipherContext",
    "strip_salt",
    "DB_SALT_LENGTH",
    "ITEM_SALT_LENGTH",
    "CHECK_SALT_LENGTH",
]
