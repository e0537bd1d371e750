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
Fault taxonomy for the contract pipeline.

Every fault carries the HTTP status code the error envelope should use.
The pipeline boundary (middleware.pipeline) catches them exactly once and
turns them into {"body": ..., "statusCode": ...} via result_translator.

Hierarchy:
    ContractError
    ├── SpecInvalidError          (construction time, never enveloped)
    │   └── OptionsError
    ├── PathNotFoundError         (400)
    ├── RequestValidationError    (400)
    ├── ResponseValidationError   (500)
    ├── HandlerDeclaredError      (handler status, 500 if unset)
    └── EnvelopeContractError     (500)
"""

from typing import Any, Dict, List, Optional


class ContractError(Exception):
    """Base class for all contract faults."""

    status_code: int = 500

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class SpecInvalidError(ContractError):
    """Raised when the API spec is missing or unusable."""

    def __init__(self, message: str = "API spec not found or invalid"):
        super().__init__(message)


class OptionsError(SpecInvalidError):
    """Raised when the validator configuration is invalid."""


class PathNotFoundError(ContractError):
    """Raised when no path template declares the requested verb."""

    status_code = 400

    def __init__(self, path: str, method: str):
        self.path = path
        self.method = method
        super().__init__(
            f"The path {path} could not be found with http method {method} in the API spec"
        )


class SchemaViolationError(ContractError):
    """Schema failure with field-level violations."""

    def __init__(self, message: str, violations: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.violations: List[Dict[str, Any]] = list(violations or [])


class RequestValidationError(SchemaViolationError):
    """Raised when a request does not satisfy the operation's request schema."""

    status_code = 400


class ResponseValidationError(SchemaViolationError):
    """Raised when a handler response does not satisfy the response schema."""

    status_code = 500


class HandlerDeclaredError(ContractError):
    """
    Raised when the handler declares a non-success status and no error
    transformer is configured.

    A falsy status falls back to 500.
    """

    def __init__(self, message: str, status_code: Optional[int]):
        super().__init__(message, status_code or 500)


class EnvelopeContractError(ContractError):
    """Raised when a handler or transformer result breaks the envelope contract."""

    def __init__(self, message: str = "Response must contain a body and statusCode"):
        super().__init__(message)


def format_violations(violations: List[Dict[str, Any]], limit: int = 3) -> str:
    """
    Render violations as a short human-readable summary.

    Args:
        violations: List of {"path": ..., "message": ...} dictionaries
        limit: Maximum number of violations to include

    Returns:
        Summary such as "body.name: 'name' is a required property"
    """
    parts = []
    for violation in violations[:limit]:
        path = violation.get("path") or "<root>"
        parts.append(f"{path}: {violation.get('message', '')}")
    if len(violations) > limit:
        parts.append(f"(+{len(violations) - limit} more)")
    return "; ".join(parts)
