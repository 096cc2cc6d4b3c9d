# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Conversion of backend listings into flat JSON documents.

A hierarchical listing such as::

    app/db/host   -> b'"x"'
    app/db/port   -> b'5432'
    app/db/tls/ca -> b'-----BEGIN'

queried with prefix ``app/db`` becomes the document
``{"host": "x", "port": 5432, "tls.ca": "-----BEGIN"}``.
"""

import json
from typing import Any, Iterable, Mapping

from .exceptions import SerializationError
from .store import KVPair

PATH_SEPARATOR = "/"
KEY_SEPARATOR = "."


def relative_key(path: str, prefix: str) -> str:
    """Strip the query prefix and its separator, then flatten the remainder."""
    if prefix and path.startswith(prefix):
        path = path[len(prefix):]
    if path.startswith(PATH_SEPARATOR):
        path = path[len(PATH_SEPARATOR):]
    return path.replace(PATH_SEPARATOR, KEY_SEPARATOR)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def decode_value(raw: bytes | None) -> Any:
    """Decode a raw value as strict JSON, falling back to its text form.

    ``NaN`` and ``Infinity`` are not JSON and stay text.
    """
    raw = raw or b""
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except ValueError:
        # Covers JSONDecodeError and UnicodeDecodeError
        return raw.decode("utf-8", errors="replace")


def flatten_kv_pairs(pairs: Iterable[KVPair], prefix: str) -> dict[str, Any]:
    """Build a flat document from the pairs listed under ``prefix``.

    Two paths that flatten to the same key (``a/b`` and ``a.b``) collide;
    the pair listed last wins.
    """
    document: dict[str, Any] = {}
    for pair in pairs:
        document[relative_key(pair.key, prefix)] = decode_value(pair.value)
    return document


def encode_document(document: Mapping[str, Any]) -> bytes:
    """Serialize a document to its JSON wire form.

    Raises:
        SerializationError: If the document holds values JSON cannot encode
    """
    try:
        return json.dumps(document, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Unable to encode document as JSON: {e}") from e
