"""Random salt strings prepended to every plaintext before encryption.

The alphabet is fixed by the on-device Keyring code: codepoints 33 to 121
inclusive. It never contains ``{``, which is what lets :func:`strip_salt`
find the start of the JSON payload after decryption.
"""

import secrets
from typing import Optional

SALT_FIRST_CHAR = 33
SALT_CHAR_COUNT = 89
SALT_ALPHABET = "".join(chr(SALT_FIRST_CHAR + i) for i in range(SALT_CHAR_COUNT))


def salt_string(num_chars: int, suffix: Optional[str] = None) -> str:
    """Return ``num_chars`` random printable characters, followed by ``suffix`` if given."""
    if num_chars < 0:
        raise ValueError("num_chars must not be negative")
    salt = "".join(secrets.choice(SALT_ALPHABET) for _ in range(num_chars))
    if suffix is not None:
        salt += suffix
    return salt
