# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Per-invocation context threaded through the pipeline stages.

An InvocationContext is built fresh for every call and replaced (never
mutated) as stages produce new data, so one ContractValidator instance can
serve concurrent invocations safely.
"""

import copy
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

from lambda_contract.json_utils import parse_json_text
from lambda_contract.spec_index import ResolvedOperation


@dataclass(frozen=True)
class InvocationContext:
    """
    State of a single invocation.

    Attributes:
        event: Normalized copy of the inbound proxy event
        lambda_context: Platform context object passed through to the handler
        operation: Resolved operation, or None when no routing is configured
        role: Caller role used for response filtering
    """

    event: Dict[str, Any]
    lambda_context: Any = None
    operation: Optional[ResolvedOperation] = None
    role: Optional[str] = None

    @property
    def path(self) -> str:
        return self.event.get("path") or ""

    @property
    def method(self) -> str:
        return self.event.get("httpMethod") or ""

    def with_event(self, **fields: Any) -> "InvocationContext":
        """Return a new context whose event has the given top-level fields replaced."""
        event = dict(self.event)
        event.update(fields)
        return replace(self, event=event)


def normalize_event(event: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Deep-copy the inbound event and parse a JSON object/array body.

    The caller's event is never modified.
    """
    normalized: Dict[str, Any] = copy.deepcopy(dict(event or {}))
    is_json, body = parse_json_text(normalized.get("body"))
    if is_json:
        normalized["body"] = body
    return normalized
