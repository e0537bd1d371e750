# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Schema validation engine.

Exposes a single contract used by the request sanitizer and the response
filter:

    SchemaEngine.validate(path, payload, context) -> sanitized payload | raises

Work done per call, in order:
  1. Deep-copy the payload (the caller's data is never mutated).
  2. Walk schema and payload together:
       - drop properties whose x-roles list excludes the caller role,
       - drop undeclared properties when additional-property removal is on,
       - coerce gateway string parameters to declared scalar types.
  3. Validate the result with jsonschema against the OpenAPI schema converted
     to JSON Schema (2020-12): $refs inlined, "nullable" and boolean
     exclusiveMinimum/exclusiveMaximum rewritten.

A property is never stripped while any allOf/anyOf/oneOf branch declares it.
"""

import copy
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Type

from jsonschema import Draft202012Validator, FormatChecker
from loguru import logger

from lambda_contract.config import MAX_SCHEMA_DEPTH, ROLE_EXTENSION_KEY
from lambda_contract.errors import (
    RequestValidationError,
    SchemaViolationError,
    format_violations,
)
from lambda_contract.options import EngineOptions
from lambda_contract.spec_index import SpecIndex

_INT_TEXT = re.compile(r"[+-]?\d+")
_COMBINATORS = ("allOf", "anyOf", "oneOf")


@dataclass(frozen=True)
class ValidationContext:
    """
    Per-call validation settings.

    Attributes:
        schema: OpenAPI schema to validate against (may contain $refs)
        remove_additional: Strip properties the schema does not declare
        role: Caller role for x-roles redaction (None disables redaction)
        coerce_sections: Top-level properties whose string scalars are coerced
        error_cls: Fault raised on violation
        label: Word used in the fault message ("Request", "Response")
        cache_key: Stable key for the compiled validator (None disables caching)
    """

    schema: Mapping[str, Any]
    remove_additional: bool = False
    role: Optional[str] = None
    coerce_sections: FrozenSet[str] = frozenset()
    error_cls: Type[SchemaViolationError] = RequestValidationError
    label: str = "Request"
    cache_key: Optional[Tuple[Any, ...]] = None


@dataclass
class _WalkStats:
    stripped: List[str] = field(default_factory=list)
    redacted: List[str] = field(default_factory=list)


def _schema_types(schema: Mapping[str, Any]) -> List[str]:
    declared = schema.get("type")
    if isinstance(declared, str):
        return [declared]
    if isinstance(declared, list):
        return [t for t in declared if isinstance(t, str)]
    return []


def _coerce_scalar(value: str, types: List[str]) -> Any:
    """
    Coerce a gateway string to the first declared type it parses as.

    Strings stay strings when "string" is an accepted type.
    """
    if not types or "string" in types:
        return value
    for target in types:
        if target == "integer" and _INT_TEXT.fullmatch(value.strip()):
            return int(value)
        if target == "number":
            text = value.strip()
            if _INT_TEXT.fullmatch(text):
                return int(text)
            try:
                number = float(text)
            except ValueError:
                continue
            if number == number and number not in (float("inf"), float("-inf")):
                return number
        if target == "boolean" and value in ("true", "false"):
            return value == "true"
        if target == "null" and value == "":
            return None
        if target == "array":
            return [value]
    return value


def _collect_role_sets(document: Any) -> List[FrozenSet[str]]:
    """Collect the distinct role lists declared anywhere in the document."""
    found: List[FrozenSet[str]] = []
    stack = [document]
    while stack:
        node = stack.pop()
        if isinstance(node, Mapping):
            allowed = node.get(ROLE_EXTENSION_KEY)
            if isinstance(allowed, str):
                allowed = [allowed]
            if isinstance(allowed, list):
                roles = frozenset(str(role) for role in allowed)
                if roles not in found:
                    found.append(roles)
            stack.extend(node.values())
        elif isinstance(node, list):
            stack.extend(node)
    return found


class SchemaEngine:
    """
    jsonschema-backed validator bound to one SpecIndex.

    Shared across invocations. The only mutable state is the compiled
    validator cache, guarded by a lock.
    """

    def __init__(self, index: SpecIndex, options: Optional[EngineOptions] = None):
        self.index = index
        self.options = options or EngineOptions()
        self._format_checker = FormatChecker() if self.options.format_checking else None
        self._validators: Dict[Tuple[Any, ...], Draft202012Validator] = {}
        self._lock = threading.Lock()
        self._role_sets: Tuple[FrozenSet[str], ...] = tuple(_collect_role_sets(index.document))

    # ------------------------------------------------------------------------------------------
    # OpenAPI -> JSON Schema
    # ------------------------------------------------------------------------------------------

    def _role_excluded(self, schema: Any, role: Optional[str]) -> bool:
        if role is None or not isinstance(schema, Mapping):
            return False
        allowed = schema.get(ROLE_EXTENSION_KEY)
        if allowed is None:
            return False
        if isinstance(allowed, str):
            allowed = [allowed]
        return role not in allowed

    def _visibility(self, role: Optional[str]) -> Optional[Tuple[int, ...]]:
        """
        Cache identity of a role: the document role lists that admit it.

        Roles admitted by the same lists see the same redacted schema, so
        unknown roles all share one compiled validator.
        """
        if role is None:
            return None
        return tuple(i for i, roles in enumerate(self._role_sets) if role in roles)

    def to_json_schema(
        self,
        schema: Any,
        role: Optional[str] = None,
        depth: int = 0,
        ref_stack: Tuple[str, ...] = (),
    ) -> Dict[str, Any]:
        """
        Convert an OpenAPI schema object to a self-contained JSON Schema.

        Args:
            schema: OpenAPI schema (may contain local $refs)
            role: When set, properties hidden from this role are removed
            depth: Current recursion depth
            ref_stack: $refs being expanded (recursion guard)

        Returns:
            JSON Schema dictionary; recursive or too-deep parts become {}
        """
        if not isinstance(schema, Mapping):
            return {}

        if "$ref" in schema:
            ref = schema["$ref"]
            if ref in ref_stack:
                return {}
            return self.to_json_schema(
                self.index.resolve_ref(ref), role, depth, ref_stack + (ref,)
            )

        if depth > MAX_SCHEMA_DEPTH:
            logger.warning(
                "[SchemaEngine] Schema depth {} exceeds max {}, accepting any value",
                depth,
                MAX_SCHEMA_DEPTH,
            )
            return {}

        result: Dict[str, Any] = {}
        hidden: List[str] = []

        for key, value in schema.items():
            if key == "nullable":
                continue
            if key == "properties" and isinstance(value, Mapping):
                props = {}
                for name, sub in value.items():
                    if self._role_excluded(self.index.deref(sub), role):
                        hidden.append(name)
                        continue
                    props[name] = self.to_json_schema(sub, role, depth + 1, ref_stack)
                result[key] = props
            elif key == "patternProperties" and isinstance(value, Mapping):
                result[key] = {
                    pattern: self.to_json_schema(sub, role, depth + 1, ref_stack)
                    for pattern, sub in value.items()
                }
            elif key in ("additionalProperties", "items", "not", "contains") and isinstance(
                value, Mapping
            ):
                result[key] = self.to_json_schema(value, role, depth + 1, ref_stack)
            elif key == "items" and isinstance(value, list):
                # Draft 4 tuple form
                result["prefixItems"] = [
                    self.to_json_schema(item, role, depth + 1, ref_stack) for item in value
                ]
            elif key in _COMBINATORS + ("prefixItems",) and isinstance(value, list):
                result[key] = [
                    self.to_json_schema(item, role, depth + 1, ref_stack) for item in value
                ]
            else:
                result[key] = value

        if hidden and isinstance(result.get("required"), list):
            result["required"] = [name for name in result["required"] if name not in hidden]

        if schema.get("nullable") is True:
            types = _schema_types(schema)
            if types and "null" not in types:
                result["type"] = types + ["null"]
            if isinstance(result.get("enum"), list) and None not in result["enum"]:
                result["enum"] = list(result["enum"]) + [None]

        for bound, flag in (("minimum", "exclusiveMinimum"), ("maximum", "exclusiveMaximum")):
            if isinstance(result.get(flag), bool):
                if result[flag] and bound in result:
                    result[flag] = result.pop(bound)
                else:
                    result.pop(flag)

        return result

    # ------------------------------------------------------------------------------------------
    # Payload walk: redaction, stripping, coercion
    # ------------------------------------------------------------------------------------------

    def _branches(self, schema: Mapping[str, Any], depth: int) -> List[Mapping[str, Any]]:
        """Flatten a schema and its allOf/anyOf/oneOf branches into concrete schemas."""
        schema = self.index.deref(schema)
        if not isinstance(schema, Mapping) or depth > MAX_SCHEMA_DEPTH:
            return []
        branches = [schema]
        for combinator in _COMBINATORS:
            for sub in schema.get(combinator) or []:
                branches.extend(self._branches(sub, depth + 1))
        return branches

    def _walk(
        self,
        schema: Any,
        instance: Any,
        context: ValidationContext,
        stats: _WalkStats,
        depth: int,
        coerce: bool,
        location: str,
    ) -> Any:
        if depth > MAX_SCHEMA_DEPTH:
            return instance
        branches = self._branches(schema, depth)
        if not branches:
            return instance

        if isinstance(instance, str) and coerce:
            types: List[str] = []
            for branch in branches:
                types.extend(t for t in _schema_types(branch) if t not in types)
            instance = _coerce_scalar(instance, types)

        if isinstance(instance, dict):
            return self._walk_object(branches, instance, context, stats, depth, coerce, location)

        if isinstance(instance, list):
            item_schemas = [b["items"] for b in branches if isinstance(b.get("items"), Mapping)]
            if not item_schemas:
                return instance
            return [
                self._walk(
                    {"allOf": item_schemas},
                    item,
                    context,
                    stats,
                    depth + 1,
                    coerce,
                    f"{location}[{idx}]",
                )
                for idx, item in enumerate(instance)
            ]

        return instance

    def _walk_object(
        self,
        branches: List[Mapping[str, Any]],
        instance: Dict[str, Any],
        context: ValidationContext,
        stats: _WalkStats,
        depth: int,
        coerce: bool,
        location: str,
    ) -> Dict[str, Any]:
        declared: Dict[str, List[Any]] = {}
        patterns: List[Tuple[str, Any]] = []
        extra_schemas: List[Mapping[str, Any]] = []
        allows_extra = False
        object_like = False

        for branch in branches:
            props = branch.get("properties")
            if isinstance(props, Mapping):
                object_like = True
                for name, sub in props.items():
                    declared.setdefault(name, []).append(sub)
            pattern_props = branch.get("patternProperties")
            if isinstance(pattern_props, Mapping):
                object_like = True
                patterns.extend(pattern_props.items())
            additional = branch.get("additionalProperties")
            if additional is True:
                allows_extra = True
            elif isinstance(additional, Mapping):
                allows_extra = True
                extra_schemas.append(additional)

        if not object_like and not extra_schemas:
            return instance

        for name in list(instance):
            prefix = f"{location}.{name}" if location else name
            subs = declared.get(name)

            if subs is not None and context.role is not None and any(
                self._role_excluded(self.index.deref(sub), context.role) for sub in subs
            ):
                del instance[name]
                stats.redacted.append(prefix)
                continue

            if subs is None:
                subs = [sub for pattern, sub in patterns if re.search(pattern, name)]
            if not subs and extra_schemas:
                subs = list(extra_schemas)

            if not subs:
                if context.remove_additional and not allows_extra and object_like:
                    del instance[name]
                    stats.stripped.append(prefix)
                continue

            instance[name] = self._walk(
                {"allOf": subs}, instance[name], context, stats, depth + 1, coerce, prefix
            )

        return instance

    # ------------------------------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------------------------------

    def _validator_for(self, context: ValidationContext) -> Draft202012Validator:
        key = None
        if context.cache_key is not None:
            key = context.cache_key + (self._visibility(context.role),)
            with self._lock:
                cached = self._validators.get(key)
            if cached is not None:
                return cached

        validator = Draft202012Validator(
            self.to_json_schema(context.schema, context.role),
            format_checker=self._format_checker,
        )
        if key is not None:
            with self._lock:
                self._validators.setdefault(key, validator)
        return validator

    def validate(self, path: str, payload: Any, context: ValidationContext) -> Any:
        """
        Validate and sanitize a payload against a schema.

        Args:
            path: Request path (used in fault messages)
            payload: Payload to validate; never mutated
            context: Per-call settings

        Returns:
            Sanitized deep copy of the payload

        Raises:
            RequestValidationError / ResponseValidationError (context.error_cls)
        """
        stats = _WalkStats()
        sanitized = copy.deepcopy(payload)
        coerce_sections = context.coerce_sections if self.options.coerce_types else frozenset()

        root = self.index.deref(context.schema)
        root_props = root.get("properties") if isinstance(root, Mapping) else None
        composite = bool(context.coerce_sections) and isinstance(root_props, Mapping)
        if composite and isinstance(sanitized, dict):
            # Composite request: each section is walked with its own coercion flag
            for section, sub in root_props.items():
                if section in sanitized:
                    sanitized[section] = self._walk(
                        sub,
                        sanitized[section],
                        context,
                        stats,
                        1,
                        section in coerce_sections,
                        section,
                    )
        else:
            sanitized = self._walk(context.schema, sanitized, context, stats, 0, False, "")

        if stats.redacted:
            logger.debug(
                "[SchemaEngine] {} {}: redacted for role '{}': {}",
                context.label,
                path,
                context.role,
                stats.redacted,
            )
        if stats.stripped:
            logger.debug(
                "[SchemaEngine] {} {}: removed additional properties: {}",
                context.label,
                path,
                stats.stripped,
            )

        errors = sorted(
            self._validator_for(context).iter_errors(sanitized),
            key=lambda e: [str(p) for p in e.absolute_path],
        )
        if errors:
            violations = [
                {
                    "path": ".".join(str(p) for p in error.absolute_path),
                    "message": error.message,
                    "keyword": error.validator,
                }
                for error in errors
            ]
            raise context.error_cls(
                f"{context.label} validation failed for {path}: {format_violations(violations)}",
                violations,
            )

        return sanitized
