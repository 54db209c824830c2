"""
gqlcache - GraphQL Request Inspection

Just enough of a GraphQL POST body to route it through the cache: the
operation name, whether it is a mutation, and who is asking. Documents are
not parsed or validated; the backend does that.
"""

import base64
import binascii
import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_OPERATION_RE = re.compile(r"(?:query|mutation)\s+(\w+)")


def extract_operation_name(body: dict[str, Any]) -> str | None:
    """
    Operation name from the explicit field, else from the document.

    Returns None for anonymous operations.
    """
    name = body.get("operationName")
    if isinstance(name, str) and name:
        return name

    query = body.get("query")
    if isinstance(query, str):
        match = _OPERATION_RE.search(query)
        if match:
            return match.group(1)
    return None


def is_mutation(body: dict[str, Any]) -> bool:
    """True when the document starts with the mutation keyword."""
    query = body.get("query")
    return isinstance(query, str) and query.lstrip().startswith("mutation")


def _decode_segment(segment: str) -> bytes:
    padded = segment + "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(padded)


def extract_user_id(authorization: str | None) -> str | None:
    """
    User id from a ``Bearer <jwt>`` header.

    The token signature is NOT verified here; the backend verifies it on
    every forwarded request. The id only namespaces cache keys. Returns the
    ``user_id`` claim, falling back to ``sub``; None for anything malformed.
    """
    if not authorization:
        return None

    token = authorization.removeprefix("Bearer ").strip()
    parts = token.split(".")
    if len(parts) < 2 or not parts[1]:
        return None

    try:
        payload = json.loads(_decode_segment(parts[1]))
    except (binascii.Error, ValueError) as e:
        logger.debug(f"Ignoring malformed bearer token: {e}")
        return None

    if not isinstance(payload, dict):
        return None

    user_id = payload.get("user_id") or payload.get("sub")
    if isinstance(user_id, bool) or not isinstance(user_id, str | int):
        return None
    return str(user_id) or None
