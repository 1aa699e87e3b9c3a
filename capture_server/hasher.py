"""Content fingerprints for captured payloads."""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any, Dict, List, Union

JSONValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]

FINGERPRINT_LENGTH = 12

# json.loads joins valid surrogate pairs, so any surrogate left in a str is unpaired.
_LONE_SURROGATE = re.compile("[\\ud800-\\udfff]")


def dumps_json(payload: JSONValue, **kwargs: Any) -> str:
    """``json.dumps`` with non-ASCII kept literal and lone surrogates escaped.

    Unpaired surrogates cannot be encoded as UTF-8; they are written as
    ``\\udxxx`` escapes, the same output as a well-formed ``JSON.stringify``.
    """

    text = json.dumps(payload, ensure_ascii=False, allow_nan=False, **kwargs)
    return _LONE_SURROGATE.sub(lambda match: f"\\u{ord(match.group()):04x}", text)


def canonical_json(payload: JSONValue, *, sort_keys: bool = False) -> str:
    """Serialise ``payload`` to the compact text that gets hashed.

    Insertion order is kept unless ``sort_keys`` is set, which matches the
    fingerprints already written to existing capture logs.
    """

    return dumps_json(payload, separators=(",", ":"), sort_keys=sort_keys)


def fingerprint(payload: JSONValue, *, sort_keys: bool = False, length: int = FINGERPRINT_LENGTH) -> str:
    digest = hashlib.sha256(canonical_json(payload, sort_keys=sort_keys).encode("utf-8")).hexdigest()
    return digest[:length]


__all__ = ["FINGERPRINT_LENGTH", "JSONValue", "canonical_json", "dumps_json", "fingerprint"]
