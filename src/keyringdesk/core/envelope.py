"""
Outer Keyring document ("envelope") codec.

    { "schema_version": 4,
      "salt": "<12 salt chars>",
      "db": "<base64 Blowfish-CFB64 ciphertext of the inner object>" }

Schema version 4 introduced salting of data; version 3 was the first with
categories. Only version 4 is read or written.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from .exceptions import FormatError

SCHEMA_VERSION = 4
ENVELOPE_SALT_LENGTH = 12


@dataclass(frozen=True)
class Envelope:
    """Plaintext header of a saved document plus the still-encrypted inner object."""

    schema_version: int
    salt: str
    db: str

    def to_dict(self) -> dict:
        return {"schema_version": self.schema_version, "salt": self.salt, "db": self.db}


def dump_json(obj: Any) -> str:
    # Compact, non-ASCII kept as-is: the same text JSON.stringify produces on the phone.
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


def parse_envelope(text: str) -> Envelope:
    """Parse and validate the outer JSON document."""
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FormatError(f"Unparseable JSON data: {exc}") from exc
    if not isinstance(obj, dict):
        raise FormatError("Unparseable JSON data: top level is not an object")

    version = obj.get("schema_version")
    # bool is an int subclass; True must not pass as a version number
    if isinstance(version, bool) or not isinstance(version, int):
        raise FormatError(f"Missing or invalid schema version {version!r}")
    if version != SCHEMA_VERSION:
        raise FormatError(f"Incompatible schema version {version}")

    salt = obj.get("salt")
    if not isinstance(salt, str) or not salt:
        raise FormatError("Envelope has no salt")
    db = obj.get("db")
    if not isinstance(db, str):
        raise FormatError("Envelope has no encrypted db")

    return Envelope(schema_version=version, salt=salt, db=db)


def build_envelope(salt: str, db: str) -> Envelope:
    return Envelope(schema_version=SCHEMA_VERSION, salt=salt, db=db)
