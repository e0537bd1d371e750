# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Validator configuration surface.

ContractOptions is built once per ContractValidator and is read-only
afterwards. Options are accepted in the camelCase form used by API Gateway
tooling (apiSpec, validateRequests, ...) and in snake_case.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from loguru import logger

from lambda_contract.config import (
    COERCE_PARAMETER_TYPES,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_ROLE_NAME,
)
from lambda_contract.errors import OptionsError, SpecInvalidError

# camelCase option name -> ContractOptions field
_OPTION_ALIASES: Dict[str, str] = {
    "apiSpec": "api_spec",
    "contentType": "content_type",
    "validateRequests": "validate_requests",
    "validateResponses": "validate_responses",
    "removeAdditionalRequestProps": "remove_additional_request_props",
    "removeAdditionalResponseProps": "remove_additional_response_props",
    "requestBodyTransformer": "request_body_transformer",
    "requestPathTransformer": "request_path_transformer",
    "requestQueryTransformer": "request_query_transformer",
    "responseSuccessTransformer": "response_success_transformer",
    "responseErrorTransformer": "response_error_transformer",
    "roleAuthorizerKey": "role_authorizer_key",
    "filterByRole": "filter_by_role",
    "defaultRoleName": "default_role_name",
    "validatorOptions": "validator_options",
    "AJVoptions": "validator_options",
}

_TRANSFORMER_FIELDS = (
    "request_body_transformer",
    "request_path_transformer",
    "request_query_transformer",
    "response_success_transformer",
    "response_error_transformer",
)


@dataclass(frozen=True)
class EngineOptions:
    """Pass-through options for the schema validation engine.

    Attributes:
        coerce_types: Coerce string parameters to declared scalar types.
        format_checking: Enforce "format" keywords (date-time, email, ...).
    """

    coerce_types: bool = COERCE_PARAMETER_TYPES
    format_checking: bool = False

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]]) -> "EngineOptions":
        if isinstance(raw, EngineOptions):
            return raw
        if not raw:
            return cls()
        if not isinstance(raw, Mapping):
            raise OptionsError("validatorOptions must be a mapping")
        coerce = raw.get("coerce_types", raw.get("coerceTypes", COERCE_PARAMETER_TYPES))
        formats = raw.get("format_checking", raw.get("formatChecking", False))
        return cls(coerce_types=bool(coerce), format_checking=bool(formats))


@dataclass(frozen=True)
class ContractOptions:
    """Resolved options for one ContractValidator."""

    api_spec: Dict[str, Any]
    content_type: str = DEFAULT_CONTENT_TYPE
    validate_requests: bool = False
    validate_responses: bool = False
    remove_additional_request_props: bool = False
    remove_additional_response_props: bool = False
    request_body_transformer: Optional[Callable[[Any], Any]] = None
    request_path_transformer: Optional[Callable[[Any], Any]] = None
    request_query_transformer: Optional[Callable[[Any], Any]] = None
    response_success_transformer: Optional[Callable[[Any, int], Any]] = None
    response_error_transformer: Optional[Callable[[Any, int, str], Any]] = None
    role_authorizer_key: Optional[str] = None
    filter_by_role: bool = False
    default_role_name: str = DEFAULT_ROLE_NAME
    validator_options: EngineOptions = field(default_factory=EngineOptions)

    @property
    def needs_route(self) -> bool:
        """Whether the operation must be resolved for this configuration."""
        return self.validate_requests or self.validate_responses or self.filter_by_role

    @classmethod
    def from_params(cls, params: Optional[Mapping[str, Any]]) -> "ContractOptions":
        """
        Build options from a user-supplied mapping.

        Args:
            params: Mapping with camelCase or snake_case option names

        Returns:
            ContractOptions with defaults applied

        Raises:
            SpecInvalidError: If apiSpec is missing or not a mapping
            OptionsError: If a transformer is not callable
        """
        if params is None:
            raise SpecInvalidError()

        known = set(cls.__dataclass_fields__)
        values: Dict[str, Any] = {}
        for key, value in params.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                logger.warning("[Options] Ignoring unknown option: {}", key)
                continue
            values[name] = value

        api_spec = values.get("api_spec")
        if not api_spec or not isinstance(api_spec, Mapping):
            raise SpecInvalidError()

        for name in _TRANSFORMER_FIELDS:
            transformer = values.get(name)
            if transformer is not None and not callable(transformer):
                raise OptionsError(f"{name} must be callable")

        # None means "use the default" for every optional field
        values = {name: value for name, value in values.items() if value is not None}
        values["validator_options"] = EngineOptions.from_mapping(
            values.get("validator_options")
        )
        for flag in (
            "validate_requests",
            "validate_responses",
            "remove_additional_request_props",
            "remove_additional_response_props",
            "filter_by_role",
        ):
            if flag in values:
                values[flag] = bool(values[flag])
        if not values.get("content_type"):
            values.pop("content_type", None)
        if not values.get("default_role_name"):
            values.pop("default_role_name", None)

        return cls(**values)
