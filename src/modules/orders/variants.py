"""Line-item variants are stored as JSON objects."""

from __future__ import annotations

import json
from typing import Any, Dict


def normalise_variant(value: Any) -> Dict[str, Any]:
    """Coerce a variant into a JSON object.

    Serialised JSON objects are decoded; any other string is kept as
    ``{"label": value}``.
    """
    if value is None or value == "":
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except ValueError:
            return {"label": value}
        return decoded if isinstance(decoded, dict) else {"label": value}
    return {"label": str(value)}
