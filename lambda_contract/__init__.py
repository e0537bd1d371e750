# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.

"""
Lambda Contract - OpenAPI contract enforcement for AWS Lambda proxy handlers.

Wraps an API Gateway (REST, proxy integration) handler so that requests and
responses are checked against an OpenAPI document.

Modules:
    - config: Configuration and constants
    - options: Validator configuration surface
    - errors: Fault taxonomy
    - spec_index: Route resolution and $ref lookup
    - schema_engine: jsonschema-backed validation and sanitization
    - middleware: Pipeline stages and the ContractValidator
    - models_apigw: Pydantic models for proxy events
    - local_server: FastAPI app emulating API Gateway locally
"""

# Version is imported from config.py, the single source of truth
from lambda_contract.config import APP_VERSION as __version__

__author__ = "Jwadow"

# Main components for convenient import
from lambda_contract.middleware import ContractValidator, ResponseMode, contract
from lambda_contract.options import ContractOptions, EngineOptions
from lambda_contract.spec_index import ResolvedOperation, SpecIndex
from lambda_contract.schema_engine import SchemaEngine

# Exceptions
from lambda_contract.errors import (
    ContractError,
    EnvelopeContractError,
    HandlerDeclaredError,
    OptionsError,
    PathNotFoundError,
    RequestValidationError,
    ResponseValidationError,
    SpecInvalidError,
)

__all__ = [
    # Version
    "__version__",

    # Main classes
    "ContractValidator",
    "ContractOptions",
    "EngineOptions",
    "ResponseMode",
    "SchemaEngine",
    "SpecIndex",
    "ResolvedOperation",
    "contract",

    # Exceptions
    "ContractError",
    "EnvelopeContractError",
    "HandlerDeclaredError",
    "OptionsError",
    "PathNotFoundError",
    "RequestValidationError",
    "ResponseValidationError",
    "SpecInvalidError",
]
