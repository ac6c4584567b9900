"""Unit tests for the salt string generator."""

import pytest
from keyringdesk.security.salt import SALT_ALPHABET, salt_string


def test_alphabet_is_the_keyring_range():
    """89 characters, codepoints 33..121, never a brace."""
    assert len(SALT_ALPHABET) == 89
    assert min(map(ord, SALT_ALPHABET)) == 33
    assert max(map(ord, SALT_ALPHABET)) == 121
    assert "{" not in SALT_ALPHABET
    assert "z" not in SALT_ALPHABET


@pytest.mark.parametrize("length", [0, 1, 4, 8, 12, 16])
def test_salt_length(length):
    salt = salt_string(length)
    assert len(salt) == length
    assert all(c in SALT_ALPHABET for c in salt)


def test_suffix_is_appended():
    salted = salt_string(4, '{"a":1}')
    assert len(salted) == 4 + len('{"a":1}')
    assert salted.endswith('{"a":1}')
    assert all(c in SALT_ALPHABET for c in salted[:4])


def test_none_suffix_adds_nothing():
    assert len(salt_string(12, None)) == 12


def test_negative_length_rejected():
    with pytest.raises(ValueError):
        salt_string(-1)


def test_salts_differ():
    """Uses a CSPRNG; two 16-char salts colliding would be astronomically unlikely."""
    assert salt_string(16) != salt_string(16)
