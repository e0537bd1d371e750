# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Local API Gateway emulation.

Serves a wrapped handler over plain HTTP so a contract can be exercised
without deploying: every request is turned into a REST (v1) proxy event,
passed through the ContractValidator, and the returned envelope becomes the
HTTP response.

Endpoints:
    GET /health      - Liveness check (never forwarded to the handler)
    ANY /{path}      - Forwarded to the handler as a proxy event
"""

import base64
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from fastapi import FastAPI, Request, Response
from loguru import logger

from lambda_contract.config import APP_DESCRIPTION, APP_TITLE, APP_VERSION
from lambda_contract.errors import PathNotFoundError
from lambda_contract.json_utils import dump_json, is_structured
from lambda_contract.middleware.pipeline import ContractValidator
from lambda_contract.models_apigw import (
    APIGatewayProxyEvent,
    APIGatewayProxyResult,
    ApiGatewayAuthorizer,
    ApiGatewayIdentity,
    ApiGatewayRequestContext,
)
from lambda_contract.spec_index import SpecIndex, path_parameters

_PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def match_route(index: SpecIndex, path: str, method: str) -> Tuple[str, Optional[Dict[str, str]]]:
    """
    Find the resource template and path parameters for a request.

    Unknown routes keep the literal path as resource; the validator reports
    them when routing is enabled.
    """
    try:
        operation = index.resolve(path, method)
    except PathNotFoundError:
        return path, None
    return operation.template, path_parameters(operation.template, path) or None


def _multi_values(items: List[Tuple[str, str]]) -> Dict[str, List[str]]:
    grouped: Dict[str, List[str]] = {}
    for key, value in items:
        grouped.setdefault(key, []).append(value)
    return grouped


def build_proxy_event(
    index: SpecIndex,
    method: str,
    path: str,
    headers: List[Tuple[str, str]],
    query: List[Tuple[str, str]],
    body: bytes,
    claims: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build a REST (v1) proxy event for an HTTP request.

    Args:
        index: Spec index used to find the resource template
        method: HTTP verb
        path: Request path
        headers: Header (name, value) pairs in arrival order
        query: Query (name, value) pairs in arrival order
        body: Raw request body
        claims: Authorizer claims to attach (None for no authorizer)

    Returns:
        Event dict as API Gateway would deliver it
    """
    # Last value wins for single-value maps, like API Gateway
    header_map = dict(headers)
    query_map = dict(query)
    lowered = {key.lower(): value for key, value in header_map.items()}

    is_base64 = False
    body_text: Optional[str] = None
    if body:
        try:
            body_text = body.decode("utf-8")
        except UnicodeDecodeError:
            body_text = base64.b64encode(body).decode("ascii")
            is_base64 = True

    resource, params = match_route(index, path, method)

    event = APIGatewayProxyEvent(
        resource=resource,
        path=path,
        httpMethod=method.upper(),
        headers=header_map,
        multiValueHeaders=_multi_values(headers),
        queryStringParameters=query_map or None,
        multiValueQueryStringParameters=_multi_values(query) or None,
        pathParameters=params,
        requestContext=ApiGatewayRequestContext(
            identity=ApiGatewayIdentity(
                sourceIp=lowered.get("x-forwarded-for", "127.0.0.1"),
                userAgent=lowered.get("user-agent"),
            ),
            authorizer=ApiGatewayAuthorizer(claims=dict(claims)) if claims else None,
            requestId=str(uuid.uuid4()),
            resourcePath=resource,
            httpMethod=method.upper(),
            path=path,
        ),
        body=body_text,
        isBase64Encoded=is_base64,
    )
    return event.model_dump(exclude_none=True)


def envelope_to_response(envelope: Mapping[str, Any], content_type: str) -> Response:
    """
    Convert a handler envelope to an HTTP response.

    Structured bodies (set by a response transformer) are serialized;
    base64 bodies are decoded.
    """
    result = APIGatewayProxyResult(**envelope)

    body = result.body
    if is_structured(body):
        content = dump_json(body).encode("utf-8")
    elif body is None:
        content = b""
    elif result.isBase64Encoded:
        content = base64.b64decode(body)
    elif isinstance(body, bytes):
        content = body
    elif isinstance(body, str):
        content = body.encode("utf-8")
    else:
        content = json.dumps(body).encode("utf-8")

    headers: Dict[str, str] = {"content-type": content_type}
    for key, value in (result.headers or {}).items():
        headers[key.lower()] = str(value)
    for key, values in (result.multiValueHeaders or {}).items():
        if values:
            headers[key.lower()] = ", ".join(str(value) for value in values)

    return Response(content=content, status_code=result.statusCode, headers=headers)


def create_app(
    validator: ContractValidator, claims: Optional[Mapping[str, Any]] = None
) -> FastAPI:
    """
    Create the local emulation app for a wrapped handler.

    Args:
        validator: Configured ContractValidator
        claims: Authorizer claims attached to every event, e.g.
                {"custom:role": "admin"} to exercise role filtering

    Returns:
        FastAPI application
    """
    app = FastAPI(title=APP_TITLE, description=APP_DESCRIPTION, version=APP_VERSION)
    lambda_handler = validator.install_async()
    content_type = validator.options.content_type

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": APP_VERSION,
        }

    @app.api_route("/{proxy_path:path}", methods=_PROXY_METHODS)
    async def proxy(request: Request, proxy_path: str) -> Response:
        event = build_proxy_event(
            validator.index,
            request.method,
            request.url.path,
            list(request.headers.items()),
            list(request.query_params.multi_items()),
            await request.body(),
            claims=claims,
        )
        envelope = await lambda_handler(event, None)
        logger.info(
            "[LocalServer] {} {} -> {}", request.method, request.url.path, envelope["statusCode"]
        )
        return envelope_to_response(envelope, content_type)

    return app
