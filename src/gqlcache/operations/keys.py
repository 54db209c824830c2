"""
gqlcache - Cache Keys

Key layout: ``<prefix>:<userId>:<operationName>[:<canonical json args>]``

The argument suffix is omitted when there are no arguments, so a no-arg
operation always maps to one stable key. Arguments are serialized with
sorted keys at every nesting level and compact separators; two mappings
with the same pairs in a different insertion order produce the same key.
"""

import json
from collections.abc import Mapping
from typing import Any

from ..errors import ValidationError

DEFAULT_KEY_PREFIX = "gql"


def canonical_json(arguments: Mapping[str, Any]) -> str:
    """Deterministic JSON for an argument mapping."""
    try:
        return json.dumps(arguments, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"Operation arguments are not JSON serializable: {e}",
            details={"error": str(e)},
        ) from e


def operation_prefix(user_id: str, operation_name: str, prefix: str = DEFAULT_KEY_PREFIX) -> str:
    """Key shared by every entry of one (user, operation) pair, without the argument suffix."""
    if not user_id:
        raise ValidationError("user_id must be a non-empty string")
    if not operation_name:
        raise ValidationError("operation_name must be a non-empty string")
    return f"{prefix}:{user_id}:{operation_name}"


def resolve_cache_key(
    user_id: str,
    operation_name: str,
    arguments: Mapping[str, Any] | None = None,
    prefix: str = DEFAULT_KEY_PREFIX,
) -> str:
    """
    Build the cache key for one read.

    Args:
        user_id: Stable id of the authenticated principal
        operation_name: GraphQL operation name
        arguments: Operation variables (None or empty -> no suffix)
        prefix: Key namespace

    Returns:
        Deterministic cache key

    Raises:
        ValidationError: On empty user/operation or non-serializable arguments
    """
    base = operation_prefix(user_id, operation_name, prefix)
    if not arguments:
        return base
    return f"{base}:{canonical_json(arguments)}"
