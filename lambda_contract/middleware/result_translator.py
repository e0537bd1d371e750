# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Envelope construction for success results and faults.

Every invocation ends in exactly {"body": ..., "statusCode": ...}.
"""

from typing import Any, Dict

from lambda_contract.errors import EnvelopeContractError
from lambda_contract.json_utils import dump_json, is_structured


def build_default_envelope(payload: Any, status_code: int) -> Dict[str, Any]:
    """Default success envelope: structured payloads are serialized."""
    body = dump_json(payload) if is_structured(payload) else payload
    return {"body": body, "statusCode": status_code}


def ensure_envelope(response: Any) -> Dict[str, Any]:
    """
    Check a handler/transformer result against the envelope contract.

    Extra keys (headers, isBase64Encoded, ...) set by a transformer are kept.

    Raises:
        EnvelopeContractError: If body or statusCode is missing
    """
    if not isinstance(response, dict) or "body" not in response or "statusCode" not in response:
        raise EnvelopeContractError()
    return response


def error_envelope(exc: BaseException) -> Dict[str, Any]:
    """Convert any fault into an error envelope; status defaults to 500."""
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, bool) or not isinstance(status_code, int) or not status_code:
        status_code = 500
    return {"body": dump_json({"message": str(exc)}), "statusCode": status_code}
