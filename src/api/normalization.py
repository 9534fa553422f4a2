"""Request key normalisation.

Clients send either ``startDate`` or ``start_date``; everything past the
parser sees snake_case only.
"""
import re

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def to_snake(name: str) -> str:
    if not isinstance(name, str) or "_" in name or name.islower():
        return name
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def normalize_keys(data):
    """Rewrite top-level mapping keys to snake_case.

    Nested values are left alone: they hold user data (tags, preferences)
    whose keys belong to the client. When both spellings are present the
    snake_case one wins.
    """
    if not isinstance(data, dict):
        return data
    normalized = {}
    for key, value in data.items():
        snake = to_snake(key)
        if snake != key and snake in data:
            continue
        normalized[snake] = value
    return normalized


def query_param(request, name: str, default=None):
    """Read a query parameter by its snake_case name, accepting camelCase."""
    params = request.query_params
    if name in params:
        return params.get(name)
    parts = name.split("_")
    camel = parts[0] + "".join(part.title() for part in parts[1:])
    return params.get(camel, default)
