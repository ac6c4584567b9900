"""
Exceptions for the keyringdesk core
Everything derives from KeyringError so callers have one thing to catch.
A wrong password is not an exception: validate_password() returns False.
"""


class KeyringError(Exception):
    # general container for errors
    pass


class FormatError(KeyringError):
    # raised on malformed envelopes, schema version mismatch, bad JSON or base64
    pass


class CryptoError(KeyringError):
    # raised when the Blowfish primitive is unavailable or rejects the key
    pass


class StateError(KeyringError):
    # raised on illegal transitions (double lock, unknown category id, wiped cipher)
    pass


class TransportError(KeyringError, OSError):
    # raised when a remote save target does not acknowledge the upload
    pass


class ConversionError(KeyringError):
    # raised when an import source cannot be converted
    pass
