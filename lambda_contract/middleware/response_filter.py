# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Response filter middleware.

Validates the envelope body against the operation's response schema and, for
role-filtered configurations, redacts properties the caller's role may not
see. The mode is picked once per invocation:

    NONE              neither validateResponses nor filterByRole
    SCHEMA            validateResponses, or filterByRole without roleAuthorizerKey
    SCHEMA_WITH_ROLE  filterByRole with roleAuthorizerKey

Body representation is preserved: JSON text is parsed, filtered and
re-serialized; structured bodies stay structured.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from loguru import logger

from lambda_contract.errors import ResponseValidationError
from lambda_contract.json_utils import dump_json, is_structured, parse_json_text
from lambda_contract.options import ContractOptions
from lambda_contract.schema_engine import SchemaEngine, ValidationContext
from lambda_contract.spec_index import ResolvedOperation, media_schema


class ResponseMode(Enum):
    """How the response body is checked."""

    NONE = "none"
    SCHEMA = "schema"
    SCHEMA_WITH_ROLE = "schema_with_role"


def select_response_mode(options: ContractOptions) -> ResponseMode:
    """Pick the response mode from configuration flags."""
    if options.filter_by_role and options.role_authorizer_key:
        return ResponseMode.SCHEMA_WITH_ROLE
    if options.validate_responses or options.filter_by_role:
        return ResponseMode.SCHEMA
    return ResponseMode.NONE


def resolve_role(event: Mapping[str, Any], options: ContractOptions) -> Optional[str]:
    """
    Read the caller role from requestContext.authorizer.claims.

    Each level is checked explicitly; any missing level, or a missing or empty
    claim, yields the configured default role.

    Returns:
        Role name, or None when role filtering is not configured
    """
    if not (options.filter_by_role and options.role_authorizer_key):
        return None

    request_context = event.get("requestContext")
    authorizer = request_context.get("authorizer") if isinstance(request_context, Mapping) else None
    claims = authorizer.get("claims") if isinstance(authorizer, Mapping) else None
    role = claims.get(options.role_authorizer_key) if isinstance(claims, Mapping) else None

    if role is None or role == "":
        return options.default_role_name
    return str(role)


def response_schema_for(
    engine: SchemaEngine,
    operation: ResolvedOperation,
    status_code: int,
    content_type: str,
) -> Optional[Mapping[str, Any]]:
    """
    Find the declared response schema for a status code.

    Lookup order: exact status, range key ("2XX"), "default".
    Supports OpenAPI 3 "content" maps and Swagger 2 "schema".
    """
    responses = operation.operation.get("responses")
    if not isinstance(responses, Mapping):
        return None

    status_class = str(status_code)[0]
    for key in (str(status_code), f"{status_class}XX", f"{status_class}xx", "default"):
        if key not in responses:
            continue
        response = engine.index.deref(responses[key])
        if not isinstance(response, Mapping):
            return None
        schema = media_schema(response.get("content"), content_type)
        if schema is None and isinstance(response.get("schema"), Mapping):
            schema = response["schema"]
        return schema
    return None


def filter_response(
    engine: SchemaEngine,
    options: ContractOptions,
    mode: ResponseMode,
    operation: Optional[ResolvedOperation],
    response: Dict[str, Any],
    role: Optional[str] = None,
    path: str = "",
) -> Dict[str, Any]:
    """
    Validate and filter the body of a response envelope.

    Args:
        engine: Schema engine
        options: Validator options
        mode: Response mode selected for this invocation
        operation: Resolved operation (None skips filtering)
        response: Envelope with "body" and "statusCode" (not modified)
        role: Caller role for SCHEMA_WITH_ROLE
        path: Request path for fault messages

    Returns:
        Envelope with the filtered body

    Raises:
        ResponseValidationError: If the body violates the response schema
    """
    if mode is ResponseMode.NONE or operation is None:
        return response

    status_code = response["statusCode"]
    schema = response_schema_for(engine, operation, status_code, options.content_type)
    if schema is None:
        logger.debug(
            "[ResponseFilter] No response schema for {} {} status {}, passing through",
            operation.method.upper(),
            operation.template,
            status_code,
        )
        return response

    body = response["body"]
    converted, to_validate = parse_json_text(body)

    context = ValidationContext(
        schema=schema,
        remove_additional=options.remove_additional_response_props,
        role=role if mode is ResponseMode.SCHEMA_WITH_ROLE else None,
        error_cls=ResponseValidationError,
        label="Response",
        cache_key=("response", operation.template, operation.method, status_code),
    )
    filtered = engine.validate(path or operation.template, to_validate, context)

    result = dict(response)
    result["body"] = dump_json(filtered) if converted and is_structured(filtered) else filtered
    return result
