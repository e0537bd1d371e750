# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Helpers for bodies that may arrive serialized or already structured."""

import json
from typing import Any, Tuple


def is_structured(value: Any) -> bool:
    """Return True for JSON objects and arrays in structured form."""
    return isinstance(value, (dict, list))


def parse_json_text(value: Any) -> Tuple[bool, Any]:
    """
    Parse a string holding a serialized JSON object or array.

    Scalars ("42", "true", '"x"') are not treated as serialized bodies.

    Returns:
        (True, parsed) when value was JSON object/array text, else (False, value)
    """
    if not isinstance(value, (str, bytes, bytearray)):
        return False, value
    try:
        parsed = json.loads(value)
    except ValueError:
        return False, value
    if is_structured(parsed):
        return True, parsed
    return False, value


def dump_json(value: Any) -> str:
    """Serialize compactly, keeping non-ASCII characters as-is."""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
