"""Unit tests for the outer envelope codec."""

import json
import pytest

from keyringdesk.core.envelope import (
    SCHEMA_VERSION,
    Envelope,
    build_envelope,
    dump_json,
    parse_envelope,
)
from keyringdesk.core.exceptions import FormatError


def _doc(**overrides):
    doc = {"schema_version": 4, "salt": "!!!!!!!!!!!!", "db": "AAAA"}
    doc.update(overrides)
    return json.dumps(doc)


def test_parse_valid_envelope():
    env = parse_envelope(_doc())
    assert env == Envelope(schema_version=4, salt="!!!!!!!!!!!!", db="AAAA")


@pytest.mark.parametrize("version", [3, 5, 0])
def test_other_schema_versions_rejected(version):
    with pytest.raises(FormatError, match=f"Incompatible schema version {version}"):
        parse_envelope(_doc(schema_version=version))


@pytest.mark.parametrize("version", ["4", None, True, 4.5])
def test_non_integer_schema_version_rejected(version):
    with pytest.raises(FormatError):
        parse_envelope(_doc(schema_version=version))


def test_missing_schema_version_rejected():
    with pytest.raises(FormatError):
        parse_envelope(json.dumps({"salt": "x", "db": "y"}))


def test_unparseable_json():
    with pytest.raises(FormatError, match="Unparseable JSON data"):
        parse_envelope("{not json")


def test_top_level_must_be_object():
    with pytest.raises(FormatError, match="Unparseable"):
        parse_envelope("[1, 2, 3]")


@pytest.mark.parametrize("field, value", [("salt", None), ("salt", ""), ("db", None), ("db", 12)])
def test_missing_fields(field, value):
    with pytest.raises(FormatError):
        parse_envelope(_doc(**{field: value}))


def test_build_envelope_round_trip():
    env = build_envelope("abc", "ZGF0YQ==")
    assert env.schema_version == SCHEMA_VERSION
    assert parse_envelope(dump_json(env.to_dict())) == env


def test_dump_json_is_compact_and_keeps_unicode():
    assert dump_json({"a": [1, "ü"]}) == '{"a":[1,"ü"]}'
