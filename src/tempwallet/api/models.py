"""Shared request model base and response envelope."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Application payloads are returned exactly as the client sent them
OPAQUE_FIELDS = frozenset({"session_data"})


class RequestModel(BaseModel):
    """Accepts both camelCase (web clients) and snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def camelize(value: Any) -> Any:
    """Recursively convert snake_case dict keys to camelCase."""
    if isinstance(value, dict):
        return {
            to_camel(key): item if key in OPAQUE_FIELDS else camelize(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [camelize(item) for item in value]
    return value


def envelope(result: dict[str, Any]) -> dict[str, Any]:
    """Wrap a service result as ``{"ok": true, ...}`` with camelCase keys."""
    return {"ok": True, **camelize(result)}
