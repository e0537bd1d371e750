# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
User-supplied transform hooks.

Request side (after sanitization, before the handler):
    requestBodyTransformer(body)          -> event["body"]
    requestPathTransformer(path_params)   -> event["pathParameters"]
    requestQueryTransformer(query)        -> event["queryStringParameters"]

Response side (after the handler), chosen by status class:
    status < 300:  responseSuccessTransformer(payload, status)  or the default envelope
    status >= 300: responseErrorTransformer(payload, status, message)  or HandlerDeclaredError

A missing hook is never a silent no-op on the response side: it falls
through to the default envelope or to the error fault.
"""

from typing import Any, Dict

from lambda_contract.errors import HandlerDeclaredError
from lambda_contract.middleware.context import InvocationContext
from lambda_contract.middleware.handler_invoker import HandlerOutcome
from lambda_contract.middleware.result_translator import build_default_envelope
from lambda_contract.options import ContractOptions


def apply_request_transforms(
    options: ContractOptions, context: InvocationContext
) -> InvocationContext:
    """
    Apply configured request transformers.

    Args:
        options: Validator options holding the transformers
        context: Context carrying the sanitized event

    Returns:
        New context with transformed event fields (input context untouched)
    """
    event = context.event
    updates: Dict[str, Any] = {}

    if options.request_body_transformer is not None:
        body = event.get("body")
        updates["body"] = options.request_body_transformer({} if body is None else body)

    if options.request_path_transformer is not None:
        updates["pathParameters"] = options.request_path_transformer(
            event.get("pathParameters") or {}
        )

    if options.request_query_transformer is not None:
        updates["queryStringParameters"] = options.request_query_transformer(
            event.get("queryStringParameters") or {}
        )

    if not updates:
        return context
    return context.with_event(**updates)


def apply_response_transform(options: ContractOptions, outcome: HandlerOutcome) -> Any:
    """
    Turn a handler outcome into a response envelope candidate.

    Args:
        options: Validator options holding the response transformers
        outcome: Handler outcome

    Returns:
        Envelope candidate (checked afterwards by result_translator.ensure_envelope)

    Raises:
        HandlerDeclaredError: Non-success status without an error transformer
    """
    if outcome.is_success:
        if options.response_success_transformer is not None:
            return options.response_success_transformer(outcome.payload, outcome.status_code)
        return build_default_envelope(outcome.payload, outcome.status_code)

    if options.response_error_transformer is not None:
        return options.response_error_transformer(
            outcome.payload, outcome.status_code, outcome.message
        )
    raise HandlerDeclaredError(outcome.message, outcome.status_code)
