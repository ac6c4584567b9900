"""
Item Record: one entry on a keyring.

Plaintext attributes: title, category, created, viewed, changed.
Encrypted attributes: username, pass, url, notes (held in ``encrypted_data``).

An item is either locked (encrypted fields cleared, ciphertext held) or
unlocked (encrypted fields in the clear). Items read from a document start
locked and are only decrypted when one of the encrypted fields is touched.
"""

from __future__ import annotations

import json
import logging
import time
import weakref
from typing import TYPE_CHECKING, Any, Dict, Optional

from keyringdesk.security.crypto import ITEM_SALT_LENGTH
from .envelope import dump_json
from .exceptions import FormatError, StateError

if TYPE_CHECKING:
    from .ring import Ring

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def _date_in(value: Any) -> int:
    # Dates are stored as an empty string if undefined
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise FormatError(f"Invalid date value {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise FormatError(f"Invalid date value {value!r}") from exc


def _date_out(value: int):
    return value if value else ""


def _text(value: Any) -> str:
    return "" if value is None else str(value)


class Item:
    __slots__ = (
        "_ring",
        "_title",
        "category_id",
        "created",
        "viewed",
        "changed",
        "_username",
        "_password",
        "_url",
        "_notes",
        "_encrypted_data",
        "_locked",
        "_stale",
    )

    def __init__(
        self,
        ring: "Ring",
        title: str,
        username: str = "",
        password: str = "",
        url: str = "",
        notes: str = "",
        category: str = "Unfiled",
        created: int = 0,
        viewed: int = 0,
        changed: int = 0,
    ):
        """
            Create an unlocked item from explicit field values.
            It gets locked the first time it is serialized.
        """
        if not title:
            raise ValueError("Item title must not be empty")
        self._ring = weakref.ref(ring)
        self._title = title
        self.category_id = ring.category_id_for_name(category)
        self.created = created
        self.viewed = viewed
        self.changed = changed
        self._username = username
        self._password = password
        self._url = url
        self._notes = notes
        self._encrypted_data: Optional[str] = None
        self._locked = False
        self._stale = True

    @classmethod
    def from_dict(cls, ring: "Ring", raw: Dict[str, Any]) -> "Item":
        """
            Rehydrate a locked item from its JSON form inside a decrypted document.
        """
        if not isinstance(raw, dict):
            raise FormatError("Item entry is not an object")
        title = raw.get("title")
        if not isinstance(title, str) or not title:
            raise FormatError(f"Item has no title: {raw!r}")
        encrypted = raw.get("encrypted_data")
        if not isinstance(encrypted, str):
            raise FormatError(f"Item {title!r} has no encrypted_data")
        try:
            category_id = int(raw.get("category", 0) or 0)
        except (TypeError, ValueError) as exc:
            raise FormatError(f"Item {title!r} has an invalid category") from exc

        item = cls.__new__(cls)
        item._ring = weakref.ref(ring)
        item._title = title
        item.category_id = category_id
        item.created = _date_in(raw.get("created"))
        item.viewed = _date_in(raw.get("viewed"))
        item.changed = _date_in(raw.get("changed"))
        item._username = ""
        item._password = ""
        item._url = ""
        item._notes = ""
        item._encrypted_data = encrypted
        item._locked = True
        item._stale = False
        return item

    # ------------------------------------------------------------------
    # Owner lookup
    # ------------------------------------------------------------------

    @property
    def ring(self) -> "Ring":
        ring = self._ring() if self._ring is not None else None
        if ring is None:
            raise StateError(f"Item {self._title!r} is not attached to a keyring")
        return ring

    def detach(self) -> None:
        """Drop the back-reference to the owning keyring."""
        self._ring = None

    # ------------------------------------------------------------------
    # Lock state
    # ------------------------------------------------------------------

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def encrypted_data(self) -> Optional[str]:
        return self._encrypted_data

    def lock(self) -> None:
        """Encrypt the sensitive fields and clear them from memory."""
        if self._locked:
            raise StateError(f"Item {self._title!r} is already locked")
        # Ciphertext is reused until a field is written, keeping the stored item salt.
        if self._stale or self._encrypted_data is None:
            payload = dump_json(
                {
                    "username": self._username,
                    "pass": self._password,
                    "url": self._url,
                    "notes": self._notes,
                }
            )
            self._encrypted_data = self.ring.encrypt(payload, ITEM_SALT_LENGTH)
        self._username = ""
        self._password = ""
        self._url = ""
        self._notes = ""
        self._locked = True
        self._stale = False

    def unlock(self) -> None:
        """Decrypt ``encrypted_data`` into the sensitive fields."""
        if not self._locked:
            return
        logger.debug("unlocking item")
        raw = self.ring.decrypt(self._encrypted_data)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise FormatError(f"Item {self._title!r} holds undecryptable data") from exc
        if not isinstance(data, dict):
            raise FormatError(f"Item {self._title!r} holds undecryptable data")
        self._username = _text(data.get("username"))
        self._password = _text(data.get("pass"))
        self._url = _text(data.get("url"))
        self._notes = _text(data.get("notes"))
        self._locked = False

    def _read(self, value_attr: str) -> str:
        self.unlock()
        return getattr(self, value_attr)

    def _write(self, value_attr: str, value: str) -> None:
        self.unlock()
        setattr(self, value_attr, value)
        self._stale = True

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    @property
    def title(self) -> str:
        return self._title

    @property
    def username(self) -> str:
        return self._read("_username")

    @username.setter
    def username(self, value: str) -> None:
        self._write("_username", value)

    @property
    def password(self) -> str:
        return self._read("_password")

    @password.setter
    def password(self, value: str) -> None:
        self._write("_password", value)

    @property
    def url(self) -> str:
        return self._read("_url")

    @url.setter
    def url(self, value: str) -> None:
        self._write("_url", value)

    @property
    def notes(self) -> str:
        return self._read("_notes")

    @notes.setter
    def notes(self, value: str) -> None:
        self._write("_notes", value)

    @property
    def category(self) -> str:
        return self.ring.category_name_for_id(self.category_id)

    @category.setter
    def category(self, name: str) -> None:
        self.category_id = self.ring.category_id_for_name(name)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """
            Lock if needed and return the JSON form stored in the document.
        """
        if not self._locked:
            self.lock()
        return {
            "title": self._title,
            "category": self.category_id,
            "created": _date_out(self.created),
            "viewed": _date_out(self.viewed),
            "changed": _date_out(self.changed),
            "encrypted_data": self._encrypted_data,
        }

    def to_json(self) -> str:
        return dump_json(self.to_dict())

    def __repr__(self):
        return f"Item(title={self._title!r}, locked={self._locked})"

    def __eq__(self, other):
        if not isinstance(other, Item):
            return NotImplemented
        return self._title == other._title

    def __lt__(self, other):
        if not isinstance(other, Item):
            return NotImplemented
        return self._title < other._title

    def __hash__(self):
        return hash(self._title)
