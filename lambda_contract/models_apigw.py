# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Pydantic models for API Gateway REST (v1) proxy integration traffic.

Used by the local server to build the events a deployed API Gateway would
send, and to check the envelopes handlers send back.
Use model_dump(exclude_none=True) to convert an event to a plain dict.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiGatewayIdentity(BaseModel):
    """Caller identity."""

    sourceIp: str
    userAgent: Optional[str] = None


class ApiGatewayAuthorizer(BaseModel):
    """Authorizer output; claims carry the caller role."""

    claims: Dict[str, Any] = Field(default_factory=dict)


class ApiGatewayRequestContext(BaseModel):
    """Request context attached by API Gateway."""

    identity: ApiGatewayIdentity
    authorizer: Optional[ApiGatewayAuthorizer] = None
    requestId: str
    resourcePath: Optional[str] = None
    httpMethod: Optional[str] = None
    stage: str = "local"
    path: Optional[str] = None
    protocol: str = "HTTP/1.1"


class APIGatewayProxyEvent(BaseModel):
    """Proxy integration (v1) event received by the Lambda handler."""

    resource: str
    path: str
    httpMethod: str
    headers: Dict[str, str] = Field(default_factory=dict)
    multiValueHeaders: Dict[str, List[str]] = Field(default_factory=dict)
    queryStringParameters: Optional[Dict[str, str]] = None
    multiValueQueryStringParameters: Optional[Dict[str, List[str]]] = None
    pathParameters: Optional[Dict[str, str]] = None
    stageVariables: Optional[Dict[str, str]] = None
    requestContext: ApiGatewayRequestContext
    body: Optional[str] = None
    isBase64Encoded: bool = False


class APIGatewayProxyResult(BaseModel):
    """
    Response envelope returned by a wrapped handler.

    Extra keys set by response transformers are kept.
    """

    model_config = ConfigDict(extra="allow")

    statusCode: int
    body: Any = None
    headers: Optional[Dict[str, Any]] = None
    multiValueHeaders: Optional[Dict[str, List[Any]]] = None
    isBase64Encoded: bool = False
