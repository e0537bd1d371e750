# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Contract enforcement middleware for API Gateway proxy handlers.

Architecture:
    Each stage is a plain function that takes the immutable
    InvocationContext (or the envelope produced so far) and returns a new
    value. The ContractValidator in pipeline.py runs them in a fixed order
    around the business handler.

Middleware execution order:
    1. Route resolution      - Match path + verb to an operation
    2. RequestSanitizer      - Validate and strip request sections
    3. Request transforms    - User hooks for body, path and query
    4. HandlerInvoker        - Call the handler, sync or async
    5. Response transform    - User hooks or the default envelope
    6. ResponseFilter        - Validate and redact the response body
    7. ResultTranslator      - Faults become error envelopes
"""

from lambda_contract.middleware.pipeline import ContractValidator, contract
from lambda_contract.middleware.response_filter import ResponseMode

__all__ = ["ContractValidator", "ResponseMode", "contract"]
