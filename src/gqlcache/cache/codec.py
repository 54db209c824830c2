"""
gqlcache - Cache Value Codec

Store entries are held as compact JSON text. Encoding on write and decoding
on every read means no caller ever holds a reference into a stored entry.
"""

import json
from typing import Any

from ..errors import CacheOperationError


def encode_value(value: Any) -> str:
    """Serialize a value for storage."""
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise CacheOperationError(
            f"Cache value is not JSON serializable: {e}",
            details={"action": "encode", "value_type": type(value).__name__, "error": str(e)},
        ) from e


def decode_value(data: str | bytes) -> Any:
    """Deserialize a stored value into a new object."""
    try:
        return json.loads(data)
    except ValueError as e:
        raise CacheOperationError(
            f"Stored cache value is not valid JSON: {e}",
            details={"action": "decode", "error": str(e)},
        ) from e
