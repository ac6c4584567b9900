"""
A keyring document: the Item Store plus everything needed to load and save it.

Export format (schema version 4):

    { schema_version: 4,
      salt: <12 salt chars>,
      db: encrypt(JSON.stringify(dataObject)) }

where dataObject is

    { db: { <title>: <item>, ... },
      categories: { "<id>": <name>, ... },
      crypt: { salt: <same salt>, checkData: encrypt("{" + key + "}") },
      prefs: <opaque, only if present> }

Encryption is Blowfish/CFB64 with a zero IV and the key
``b64_sha256(salt + password)`` with the padding removed, which is what the
phone's Mojo.Model.encrypt does under the hood. See
:mod:`keyringdesk.security.crypto`.

Lifecycle:

- ``Ring(password)`` starts a new, empty, unlocked document.
- ``Ring()`` + ``load()`` reads the envelope; nothing is decrypted yet.
- ``validate_password()`` decrypts the inner object and fills the store.
  Once the ring is fully loaded it only checks the password against
  ``checkData``.
- ``save()`` re-encrypts everything into a new envelope. The salt is never
  rotated.
"""

from __future__ import annotations

import json
import logging
from typing import IO, Any, Dict, List, Optional

from keyringdesk.security.crypto import (
    CHECK_SALT_LENGTH,
    DB_SALT_LENGTH,
    CipherContext,
)
from keyringdesk.security.salt import salt_string
from .envelope import (
    ENVELOPE_SALT_LENGTH,
    SCHEMA_VERSION,
    build_envelope,
    dump_json,
    parse_envelope,
)
from .exceptions import FormatError, StateError
from .models import Item
from .store import ItemStore

logger = logging.getLogger(__name__)


def _parse_categories(raw: Any) -> Dict[int, str]:
    # JSON object keys are strings; ids are ints in memory.
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise FormatError("categories is not an object")
    categories: Dict[int, str] = {}
    for key, name in raw.items():
        try:
            category_id = int(key)
        except (TypeError, ValueError) as exc:
            raise FormatError(f"Invalid category id {key!r}") from exc
        if not isinstance(name, str):
            raise FormatError(f"Invalid name for category {key!r}")
        categories[category_id] = name
    return categories


class Ring:
    """A Keyring for webOS document."""

    def __init__(self, password: Optional[bytes | str] = None):
        logger.debug("Ring()")
        self.schema_version = SCHEMA_VERSION
        self._salt = salt_string(ENVELOPE_SALT_LENGTH)
        self._cipher: Optional[CipherContext] = None
        self._check_data: Optional[str] = None
        self._store = ItemStore()
        self._crypted_db: Optional[str] = None
        self._prefs: Any = None
        self._fully_loaded = False
        self._wiped = False
        if password is not None:
            self._install_password(CipherContext.init(password, self._salt))
            self._fully_loaded = True

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def salt(self) -> str:
        return self._salt

    @property
    def check_data(self) -> Optional[str]:
        return self._check_data

    @property
    def fully_loaded(self) -> bool:
        return self._fully_loaded

    @property
    def prefs(self) -> Any:
        return self._prefs

    @prefs.setter
    def prefs(self, value: Any) -> None:
        self._prefs = value

    @property
    def store(self) -> ItemStore:
        return self._store

    def _require_usable(self) -> None:
        if self._wiped:
            raise StateError("Keyring has been wiped; load it again")

    def _require_cipher(self) -> CipherContext:
        self._require_usable()
        if self._cipher is None:
            raise StateError("Keyring is locked: no password has been validated")
        return self._cipher

    def _replace_cipher(self, cipher: CipherContext) -> None:
        if self._cipher is not None and self._cipher is not cipher:
            self._cipher.wipe()
        self._cipher = cipher

    def _install_password(self, cipher: CipherContext) -> None:
        self._check_data = cipher.encrypt(cipher.check_token(), CHECK_SALT_LENGTH)
        self._replace_cipher(cipher)

    # ------------------------------------------------------------------
    # Cipher access for items
    # ------------------------------------------------------------------

    def encrypt(self, data: str, salt_length: int) -> str:
        return self._require_cipher().encrypt(data, salt_length)

    def decrypt(self, cryptext: str) -> str:
        return self._require_cipher().decrypt(cryptext)

    # ------------------------------------------------------------------
    # Load / validate
    # ------------------------------------------------------------------

    def load(self, fp: IO[str]) -> None:
        """Read an envelope from a text stream. The inner object stays encrypted."""
        self.loads(fp.read())

    def loads(self, text: str) -> None:
        logger.debug("load()")
        self._require_usable()
        if self._fully_loaded:
            raise StateError("Keyring is already loaded")
        envelope = parse_envelope(text)
        self.schema_version = envelope.schema_version
        self._salt = envelope.salt
        self._crypted_db = envelope.db

    def validate_password(self, password: bytes | str) -> bool:
        """
        Check ``password`` against this document.

        Before the document is fully loaded this decrypts the stashed inner
        object and, if it parses, populates the store. Afterwards it only
        compares check data. Returns False for a wrong password; a corrupted
        db cannot be told apart from a wrong password and also yields False.
        """
        logger.debug("validate_password()")
        self._require_usable()
        candidate = CipherContext.init(password, self._salt)

        if self._cipher is None and self._crypted_db is None:
            # Nothing to decrypt and no password yet: a new document takes this one.
            self._install_password(candidate)
            self._fully_loaded = True
            return True

        if not self._fully_loaded:
            accepted = False
            try:
                accepted = self._decrypt_loaded_data(candidate)
            finally:
                if not accepted:
                    candidate.wipe()
            return accepted

        if self._cipher is None or self._check_data is None:
            raise StateError("Keyring has no password set")
        try:
            return self._cipher.decrypt(self._check_data) == candidate.check_token()
        finally:
            candidate.wipe()

    def _decrypt_loaded_data(self, candidate: CipherContext) -> bool:
        logger.debug("decrypting loaded data")
        decrypted = candidate.decrypt(self._crypted_db)
        try:
            obj = json.loads(decrypted)
        except json.JSONDecodeError:
            # Almost always a bad password, but a corrupt db looks the same.
            logger.debug("decrypted data does not parse")
            return False
        if not isinstance(obj, dict):
            return False

        raw_db = obj.get("db")
        if raw_db is None:
            raw_db = {}
        if not isinstance(raw_db, dict):
            raise FormatError("Decrypted data is not a Keyring backup: db is not an object")
        crypt = obj.get("crypt")
        if not isinstance(crypt, dict) or not isinstance(crypt.get("checkData"), str):
            raise FormatError("Decrypted data is not a Keyring backup: no crypt.checkData")
        if crypt.get("salt") != self._salt:
            logger.warning("inner crypt.salt does not match the envelope salt")

        # Build the new store completely before touching any state.
        store = ItemStore()
        store.load_categories(_parse_categories(obj.get("categories")))
        for key, raw_item in raw_db.items():
            item = Item.from_dict(self, raw_item)
            if item.title != key:
                logger.warning("item stored under a different key than its title")
            store.add(item)

        self._store = store
        self._check_data = crypt["checkData"]
        self._prefs = obj.get("prefs")
        self._crypted_db = None
        self._replace_cipher(candidate)
        self._fully_loaded = True
        logger.debug("loaded %d items", len(store))
        return True

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def get_export_data(self) -> Dict[str, Any]:
        """Build the envelope dict, re-encrypting the inner object."""
        logger.debug("get_export_data()")
        cipher = self._require_cipher()
        data_object: Dict[str, Any] = {
            "db": {item.title: item.to_dict() for item in self._store.items()},
            "categories": {str(k): v for k, v in self._store.categories_by_id().items()},
            "crypt": {"salt": self._salt, "checkData": self._check_data},
        }
        if self._prefs is not None:
            data_object["prefs"] = self._prefs

        db = cipher.encrypt(dump_json(data_object), DB_SALT_LENGTH)
        return build_envelope(self._salt, db).to_dict()

    def dumps(self) -> str:
        return dump_json(self.get_export_data())

    def save(self, fp: IO[str]) -> None:
        logger.debug("save()")
        fp.write(self.dumps())

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def new_item(self, title: str, **fields: Any) -> Item:
        """Create an unlocked item bound to this ring and add it."""
        item = Item(self, title, **fields)
        self.add_item(item)
        return item

    def add_item(self, item: Item) -> None:
        self._require_usable()
        if self._crypted_db is not None:
            raise StateError("Keyring is locked: validate the password before adding items")
        if item.ring is not self:
            raise StateError(f"Item {item.title!r} belongs to another keyring")
        self._store.add(item)
        self._fully_loaded = True

    def remove_item(self, title: str) -> bool:
        return self._store.remove(title)

    def get_item(self, title: str) -> Optional[Item]:
        return self._store.get(title)

    def items(self) -> List[Item]:
        return self._store.items()

    def __len__(self) -> int:
        return len(self._store)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def category_id_for_name(self, name: str) -> int:
        return self._store.category_id_for_name(name)

    def category_name_for_id(self, category_id: int) -> str:
        return self._store.category_name_for_id(category_id)

    def categories(self) -> List[str]:
        return self._store.categories()

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def wipe(self) -> None:
        """Zero the key material and drop all items. The ring cannot be used afterwards."""
        logger.debug("wipe()")
        try:
            if self._cipher is not None:
                self._cipher.wipe()
        finally:
            self._cipher = None
            self._store.clear()
            self._crypted_db = None
            self._fully_loaded = False
            self._wiped = True
