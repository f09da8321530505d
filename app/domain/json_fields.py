from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

JsonBlob = Union[str, Dict[str, Any], None]


def serialize_config(config: JsonBlob) -> str:
    if isinstance(config, str):
        return config
    return json.dumps(config or {}, ensure_ascii=False, sort_keys=True)


def serialize_payload(payload: JsonBlob) -> Optional[str]:
    if payload is None:
        return None
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, ensure_ascii=False, sort_keys=True)


def parse_json_object(value: JsonBlob) -> Optional[Dict[str, Any]]:
    """Parse a stored JSON blob; unparsable text comes back as ``{"raw": value}``."""
    if not value:
        return None
    if isinstance(value, dict):
        return value
    try:
        data = json.loads(value)
    except (json.JSONDecodeError, TypeError):
        logger.warning("failed to parse stored JSON payload/config")
        return {"raw": value}
    if not isinstance(data, dict):
        return {"raw": value}
    return data
