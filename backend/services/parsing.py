# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Parsing of structured fields that multipart forms carry as JSON text.

Two policies exist on purpose:

* strict (``parse_json_list``, ``parse_json_object``, ``parse_id_list``):
  unparseable input raises ``MalformedInput`` naming the field.
* tolerant (``parse_address``): unparseable input is logged and replaced by
  an all-empty address, so a broken optional address never blocks a
  student registration or update.  Whether this should become strict is an
  open product question; do not tighten it silently.
"""

import json
from typing import Any, Optional

from core.errors import MalformedInput
from core.logger import logger
from models.student import EMPTY_ADDRESS


def _loads(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    return json.loads(value) if isinstance(value, str) else value


def parse_json_list(value: Any, field: str) -> list:
    if value is None or value == "":
        return []
    try:
        parsed = _loads(value)
    except (ValueError, UnicodeDecodeError) as exc:
        raise MalformedInput(f"Invalid {field} format", cause=str(exc))
    if not isinstance(parsed, list):
        raise MalformedInput(f"{field} must be a list")
    return [str(item).strip() for item in parsed if str(item).strip()]


def parse_json_object(value: Any, field: str, keys: Optional[tuple] = None) -> dict:
    if value is None or value == "":
        return {}
    try:
        parsed = _loads(value)
    except (ValueError, UnicodeDecodeError) as exc:
        raise MalformedInput(f"Invalid {field} format", cause=str(exc))
    if not isinstance(parsed, dict):
        raise MalformedInput(f"{field} must be an object")
    if keys is not None:
        parsed = {k: parsed[k] for k in keys if k in parsed}
    return parsed


def parse_address(value: Any) -> dict:
    """Tolerant: anything unusable becomes the empty address."""
    if value is None or value == "":
        return dict(EMPTY_ADDRESS)
    try:
        parsed = _loads(value)
    except (ValueError, UnicodeDecodeError) as exc:
        logger.warning("unparseable address replaced with empty address: %s", exc)
        return dict(EMPTY_ADDRESS)
    if not isinstance(parsed, dict):
        logger.warning("non-object address replaced with empty address")
        return dict(EMPTY_ADDRESS)
    return {k: str(parsed.get(k) or "") for k in EMPTY_ADDRESS}


def parse_id_list(value: Any, field: str) -> list[int]:
    """JSON array (or list) of integer IDs; duplicates collapse, order kept."""
    if value is None or value == "" or value == []:
        return []
    try:
        parsed = _loads(value)
        if not isinstance(parsed, list):
            raise ValueError("not a list")
        ids = [int(v) for v in parsed]
    except (ValueError, TypeError, UnicodeDecodeError) as exc:
        raise MalformedInput(f"Invalid {field} format", cause=str(exc))
    return list(dict.fromkeys(ids))
