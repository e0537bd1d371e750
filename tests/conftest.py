# -*- coding: utf-8 -*-

"""
Shared fixtures for Lambda Contract tests.

Provides:
- A petstore OpenAPI 3 document with $refs, composition, nullable fields,
  and role-restricted properties
- A Swagger 2 document using "in: body" parameters
- A proxy event factory
"""

import copy

import pytest

from lambda_contract.options import EngineOptions
from lambda_contract.schema_engine import SchemaEngine
from lambda_contract.spec_index import SpecIndex


PETSTORE_SPEC = {
    "openapi": "3.0.3",
    "info": {"title": "Petstore", "version": "1.0.0"},
    "paths": {
        "/pet": {
            "post": {
                "operationId": "createPet",
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {"schema": {"$ref": "#/components/schemas/NewPet"}}
                    },
                },
                "responses": {
                    "201": {
                        "description": "Created",
                        "content": {
                            "application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}
                        },
                    },
                    "default": {"$ref": "#/components/responses/Error"},
                },
            },
            "get": {
                "operationId": "listPets",
                "parameters": [
                    {"name": "limit", "in": "query", "schema": {"type": "integer", "maximum": 100}},
                    {"name": "status", "in": "query", "schema": {"type": "string"}},
                ],
                "responses": {
                    "2XX": {
                        "description": "Pets",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "array",
                                    "items": {"$ref": "#/components/schemas/Pet"},
                                }
                            }
                        },
                    }
                },
            },
        },
        "/pet/{id}": {
            "parameters": [
                {"name": "id", "in": "path", "required": True, "schema": {"type": "integer"}}
            ],
            "get": {
                "operationId": "getPet",
                "parameters": [
                    {
                        "name": "X-Role",
                        "in": "header",
                        "required": False,
                        "schema": {"type": "string", "enum": ["admin", "user"]},
                    }
                ],
                "responses": {
                    "200": {
                        "description": "Pet",
                        "content": {
                            "application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}
                        },
                    }
                },
            },
            "delete": {
                "operationId": "deletePet",
                "responses": {"204": {"description": "Deleted"}},
            },
        },
        "/account/{accountId}": {
            "get": {
                "operationId": "getAccount",
                "parameters": [
                    {"name": "accountId", "in": "path", "required": True, "schema": {"type": "string"}}
                ],
                "responses": {
                    "200": {
                        "description": "Account",
                        "content": {
                            "application/json; charset=utf-8": {
                                "schema": {"$ref": "#/components/schemas/Account"}
                            }
                        },
                    }
                },
            }
        },
    },
    "components": {
        "schemas": {
            "NewPet": {
                "type": "object",
                "required": ["name"],
                "properties": {
                    "name": {"type": "string"},
                    "tag": {"type": "string", "nullable": True},
                },
            },
            "Pet": {
                "allOf": [
                    {"$ref": "#/components/schemas/NewPet"},
                    {
                        "type": "object",
                        "required": ["id"],
                        "properties": {"id": {"type": "integer"}},
                    },
                ]
            },
            "Account": {
                "type": "object",
                "required": ["id", "owner"],
                "properties": {
                    "id": {"type": "string"},
                    "owner": {"type": "string"},
                    "balance": {"type": "number", "x-roles": ["admin", "auditor"]},
                    "notes": {
                        "type": "object",
                        "properties": {
                            "public": {"type": "string"},
                            "internal": {"type": "string", "x-roles": ["admin"]},
                        },
                    },
                },
            },
            "Error": {
                "type": "object",
                "required": ["message"],
                "properties": {"message": {"type": "string"}},
            },
        },
        "responses": {
            "Error": {
                "description": "Error",
                "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Error"}}},
            }
        },
    },
}


SWAGGER2_SPEC = {
    "swagger": "2.0",
    "info": {"title": "Legacy", "version": "1.0.0"},
    "paths": {
        "/orders": {
            "post": {
                "parameters": [
                    {
                        "name": "order",
                        "in": "body",
                        "required": True,
                        "schema": {
                            "type": "object",
                            "required": ["sku"],
                            "properties": {
                                "sku": {"type": "string"},
                                "quantity": {"type": "integer", "minimum": 1},
                            },
                        },
                    },
                    {"name": "dryRun", "in": "query", "type": "boolean"},
                ],
                "responses": {
                    "200": {
                        "description": "Order",
                        "schema": {
                            "type": "object",
                            "properties": {"orderId": {"type": "string"}},
                        },
                    }
                },
            }
        }
    },
}


def build_event(method="GET", path="/", body=None, headers=None, query=None, path_params=None,
               claims=None):
    """Build a minimal API Gateway REST proxy event."""
    event = {
        "httpMethod": method,
        "path": path,
        "headers": headers,
        "queryStringParameters": query,
        "pathParameters": path_params,
        "body": body,
        "requestContext": {},
    }
    if claims is not None:
        event["requestContext"] = {"authorizer": {"claims": claims}}
    return event


@pytest.fixture
def petstore_spec():
    """Fresh deep copy of the petstore document."""
    return copy.deepcopy(PETSTORE_SPEC)


@pytest.fixture
def swagger2_spec():
    """Fresh deep copy of the Swagger 2 document."""
    return copy.deepcopy(SWAGGER2_SPEC)


@pytest.fixture
def spec_index(petstore_spec):
    """SpecIndex over the petstore document."""
    return SpecIndex(petstore_spec)


@pytest.fixture
def schema_engine(spec_index):
    """SchemaEngine with default options over the petstore document."""
    return SchemaEngine(spec_index, EngineOptions())


@pytest.fixture
def make_event():
    """Factory for API Gateway REST proxy events."""
    return build_event
