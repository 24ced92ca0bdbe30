from datetime import datetime
from typing import Any

_SCALARS = (str, int, float, bool, type(None))


def normalize(value: Any) -> Any:
    if isinstance(value, _SCALARS):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple, set, frozenset)):
        return [normalize(v) for v in value]
    return str(value)


def normalize_ctx(ctx: dict[str, Any]) -> dict[str, Any]:
    """Make an error context JSON-safe (Decimals and datetimes become strings)."""
    return {k: normalize(v) for k, v in ctx.items()}
