# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Request sanitizer middleware.

Validates body, query, headers and path parameters as one composite payload:

    {"body": ..., "query": {...}, "headers": {...}, "params": {...}}

against a composite schema assembled from the operation:
  - "parameters" grouped by their "in" location (query / header / path),
  - "requestBody.content[<contentType>].schema" (OpenAPI 3),
  - an "in: body" parameter's "schema" (Swagger 2).

HTTP header names are case-insensitive, so header names are lower-cased for
validation and mapped back to the caller's casing afterwards. Undeclared
headers are always kept; gateways add many of them.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from lambda_contract.errors import RequestValidationError
from lambda_contract.schema_engine import SchemaEngine, ValidationContext
from lambda_contract.spec_index import ResolvedOperation, media_schema

_LOCATIONS = {"query": "query", "header": "headers", "path": "params"}


@dataclass(frozen=True)
class SanitizedRequest:
    """Sanitized request sections, headers in original casing."""

    body: Any
    query: Dict[str, Any]
    headers: Dict[str, Any]
    path_parameters: Dict[str, Any]


def build_request_schema(
    engine: SchemaEngine, operation: ResolvedOperation, content_type: str
) -> Dict[str, Any]:
    """
    Assemble the composite request schema for an operation.

    Args:
        engine: Engine whose index resolves parameter and requestBody $refs
        operation: Resolved operation
        content_type: Media type used to select the body schema

    Returns:
        JSON Schema object with body/query/headers/params properties
    """
    sections: Dict[str, Dict[str, Any]] = {
        "query": {"type": "object", "properties": {}, "required": []},
        "headers": {
            "type": "object",
            "properties": {},
            "required": [],
            "additionalProperties": True,
        },
        "params": {"type": "object", "properties": {}, "required": []},
    }
    body_schema: Optional[Mapping[str, Any]] = None
    body_required = False

    for param in operation.parameters:
        location = param.get("in")
        if location == "body":
            body_schema = param.get("schema") if isinstance(param.get("schema"), Mapping) else {}
            body_required = bool(param.get("required"))
            continue
        section_name = _LOCATIONS.get(location)
        if section_name is None:
            continue
        name = str(param.get("name", ""))
        if location == "header":
            name = name.lower()
        schema = param.get("schema")
        if not isinstance(schema, Mapping):
            # Swagger 2 keeps type information on the parameter itself
            schema = {
                key: value
                for key, value in param.items()
                if key in ("type", "format", "enum", "minimum", "maximum", "pattern", "items")
            }
        section = sections[section_name]
        section["properties"][name] = schema
        if param.get("required") or location == "path":
            section["required"].append(name)

    request_body = engine.index.deref(operation.operation.get("requestBody"))
    if isinstance(request_body, Mapping):
        body_schema = media_schema(request_body.get("content"), content_type) or body_schema
        body_required = bool(request_body.get("required")) or body_required

    properties: Dict[str, Any] = dict(sections)
    if body_schema is not None:
        properties["body"] = body_schema

    for section in sections.values():
        if not section["required"]:
            del section["required"]

    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if body_required and body_schema is not None:
        schema["required"] = ["body"]
    return schema


def sanitize_request(
    engine: SchemaEngine,
    operation: ResolvedOperation,
    event: Mapping[str, Any],
    content_type: str,
    remove_additional: bool = False,
) -> SanitizedRequest:
    """
    Validate and sanitize the request sections of a proxy event.

    Args:
        engine: Schema engine
        operation: Resolved operation for this request
        event: Normalized proxy event (not modified)
        content_type: Media type used to select the body schema
        remove_additional: Strip undeclared body/query/path properties

    Returns:
        SanitizedRequest with the validated sections

    Raises:
        RequestValidationError: If any section violates the schema
    """
    original_headers: Dict[str, Any] = dict(event.get("headers") or {})
    lowered_headers = {str(key).lower(): value for key, value in original_headers.items()}

    body = event.get("body")
    request: Dict[str, Any] = {
        "body": {} if body is None or body == "" else body,
        "query": dict(event.get("queryStringParameters") or {}),
        "headers": lowered_headers,
        "params": dict(event.get("pathParameters") or {}),
    }

    context = ValidationContext(
        schema=build_request_schema(engine, operation, content_type),
        remove_additional=remove_additional,
        coerce_sections=frozenset(("query", "headers", "params")),
        error_cls=RequestValidationError,
        label="Request",
        cache_key=("request", operation.template, operation.method, content_type),
    )
    sanitized = engine.validate(event.get("path") or operation.template, request, context)

    validated_headers: Dict[str, Any] = sanitized.get("headers") or {}
    headers: Dict[str, Any] = {}
    for key in original_headers:
        lowered = str(key).lower()
        if lowered in validated_headers:
            headers[key] = validated_headers[lowered]

    sanitized_body = sanitized.get("body")
    if body is None and sanitized_body == {}:
        sanitized_body = None

    return SanitizedRequest(
        body=sanitized_body,
        query=sanitized.get("query") or {},
        headers=headers,
        path_parameters=sanitized.get("params") or {},
    )
