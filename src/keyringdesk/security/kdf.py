import base64
import hashlib


def derive_key(password: bytes | str, salt: str) -> str:
    """
    Derive the Blowfish key string for ``password`` and the document ``salt``.

    This is ``b64_sha256(salt + password)`` as computed by the on-device
    Keyring JavaScript: a single unkeyed SHA-256 over the UTF-8 bytes of the
    salt followed by the password, base64 encoded with the ``=`` padding
    removed. The returned 43-character string is itself the key material.
    """
    if isinstance(password, str):
        password = password.encode("utf-8")

    digest = hashlib.sha256()
    digest.update(salt.encode("utf-8"))
    digest.update(password)
    # The JS SHA-256 library emits unpadded base64.
    return base64.b64encode(digest.digest()).decode("ascii").replace("=", "")


def check_token_for(key: str) -> str:
    """Return the plaintext whose ciphertext is stored as ``crypt.checkData``."""
    return "{" + key + "}"
