# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Tests for key/value normalization."""

import json

import pytest

from remote_config import KVPair, SerializationError, encode_document, flatten_kv_pairs
from remote_config.normalizer import decode_value, relative_key


class TestRelativeKey:
    """Tests for prefix stripping and key flattening."""

    def test_strips_prefix_and_separator(self):
        assert relative_key("app/db/host", "app/db") == "host"

    def test_nested_path_uses_dots(self):
        assert relative_key("app/db/tls/ca", "app/db") == "tls.ca"

    def test_prefix_with_trailing_separator(self):
        """A prefix ending in '/' strips the same way as one without."""
        assert relative_key("app/db/host", "app/db/") == "host"

    def test_key_equal_to_prefix(self):
        assert relative_key("app/db", "app/db") == ""


class TestDecodeValue:
    """Tests for opportunistic JSON decoding."""

    def test_json_string(self):
        assert decode_value(b'"x"') == "x"

    def test_json_number(self):
        assert decode_value(b"5432") == 5432

    def test_json_object(self):
        assert decode_value(b'{"a": [1, 2]}') == {"a": [1, 2]}

    def test_invalid_json_kept_as_text(self):
        assert decode_value(b"hello") == "hello"

    def test_missing_value_is_empty_string(self):
        assert decode_value(None) == ""

    def test_invalid_utf8_kept_as_text(self):
        assert decode_value(b"\xffabc") == "\ufffdabc"

    def test_non_standard_constants_kept_as_text(self):
        assert decode_value(b"NaN") == "NaN"
        assert decode_value(b"-Infinity") == "-Infinity"
        assert decode_value(b'{"ratio": NaN}') == '{"ratio": NaN}'


class TestFlattenKVPairs:
    """Tests for building documents from listings."""

    def test_scenario_json_values(self):
        """Prefix app/db over host="x" and port=5432."""
        pairs = [
            KVPair("app/db/host", b'"x"'),
            KVPair("app/db/port", b"5432"),
        ]

        assert flatten_kv_pairs(pairs, "app/db") == {"host": "x", "port": 5432}

    def test_scenario_plain_text_value(self):
        """A non-JSON value is kept as a string, not an error."""
        pairs = [KVPair("app/db/note", b"hello")]

        assert flatten_kv_pairs(pairs, "app/db") == {"note": "hello"}

    def test_one_entry_per_pair(self):
        pairs = [KVPair(f"cfg/k{i}", str(i).encode()) for i in range(10)]

        document = flatten_kv_pairs(pairs, "cfg")

        assert len(document) == 10
        assert document["k7"] == 7

    def test_empty_listing(self):
        assert flatten_kv_pairs([], "app") == {}

    def test_colliding_keys_last_wins(self):
        pairs = [
            KVPair("app/a/b", b"1"),
            KVPair("app/a.b", b"2"),
        ]

        assert flatten_kv_pairs(pairs, "app") == {"a.b": 2}


class TestEncodeDocument:
    """Tests for the JSON wire form."""

    def test_encodes_utf8_json(self):
        payload = encode_document({"host": "x", "port": 5432})

        assert isinstance(payload, bytes)
        assert json.loads(payload) == {"host": "x", "port": 5432}

    def test_unencodable_value(self):
        with pytest.raises(SerializationError, match="Unable to encode"):
            encode_document({"when": object()})

    def test_non_finite_number_rejected(self):
        with pytest.raises(SerializationError, match="Unable to encode"):
            encode_document({"ratio": float("nan")})

    def test_non_standard_constants_encode_as_strings(self):
        pairs = [KVPair("app/x", b"NaN"), KVPair("app/y", b"Infinity")]

        payload = encode_document(flatten_kv_pairs(pairs, "app"))

        assert payload == b'{"x": "NaN", "y": "Infinity"}'
