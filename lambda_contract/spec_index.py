# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Route resolution against the OpenAPI path table.

Resolution order:
  1. Exact lookup of the request path in "paths".
  2. Template scan in declaration order. Each {var} segment becomes a
     character class of alphanumerics, hyphen, whitespace, "+" or "%20",
     and the pattern is anchored at the end of the request path only, so a
     stage prefix ("/prod/pet/1") still matches "/pet/{id}".

First match wins. Two templates that both match a literal path resolve to
whichever is declared first.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Pattern, Tuple

from loguru import logger

from lambda_contract.errors import PathNotFoundError, SpecInvalidError

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

_TEMPLATE_VAR = re.compile(r"\{([^}]*)\}")
_VAR_PATTERN = r"(?:[a-zA-Z0-9\-\s+]|%20)+"


@dataclass(frozen=True)
class ResolvedOperation:
    """
    The contract for one template + verb pair.

    Attributes:
        template: Path template key from the spec (e.g. "/pet/{id}")
        method: Lower-cased HTTP verb
        operation: Operation object from the spec (read-only)
        parameters: Path-level and operation-level parameters, merged
    """

    template: str
    method: str
    operation: Mapping[str, Any]
    parameters: Tuple[Mapping[str, Any], ...] = field(default=())

    @property
    def operation_id(self) -> Optional[str]:
        return self.operation.get("operationId")


def template_to_regex(template: str) -> str:
    """
    Convert a path template to an end-anchored regular expression.

    Example: "/accounts/{id}" -> "/accounts/(?:[a-zA-Z0-9\\-\\s+]|%20)+$"
    """
    literals = _TEMPLATE_VAR.split(template)[::2]
    return _VAR_PATTERN.join(re.escape(part) for part in literals) + "$"


def path_parameters(template: str, path: str) -> Dict[str, str]:
    """
    Extract {var} values from a request path matched by a template.

    Example:
        >>> path_parameters("/pet/{id}", "/prod/pet/123")
        {'id': '123'}
    """
    names = _TEMPLATE_VAR.findall(template)
    if not names:
        return {}
    literals = _TEMPLATE_VAR.split(template)[::2]
    pattern = f"({_VAR_PATTERN})".join(re.escape(part) for part in literals) + "$"
    match = re.search(pattern, path)
    if match is None:
        return {}
    return dict(zip(names, match.groups()))


class SpecIndex:
    """
    Read-only index over a parsed OpenAPI document.

    Safe to share between concurrent invocations: the document is never
    mutated and the compiled pattern table is built once in __init__.
    """

    def __init__(self, document: Any):
        if not document or not isinstance(document, Mapping):
            raise SpecInvalidError()
        paths = document.get("paths")
        if not isinstance(paths, Mapping):
            raise SpecInvalidError("API spec has no paths object")

        self.document: Mapping[str, Any] = document
        self._paths: Mapping[str, Any] = paths
        self._patterns: List[Tuple[str, Pattern[str]]] = [
            (template, re.compile(template_to_regex(template))) for template in paths
        ]
        logger.debug("[SpecIndex] Indexed {} path templates", len(self._patterns))

    @property
    def templates(self) -> List[str]:
        return [template for template, _ in self._patterns]

    def _operation_for(self, template: str, method: str) -> Optional[Mapping[str, Any]]:
        if method not in HTTP_METHODS:
            return None
        path_item = self._paths.get(template)
        if not isinstance(path_item, Mapping):
            return None
        operation = path_item.get(method)
        if isinstance(operation, Mapping):
            return operation
        return None

    def _merged_parameters(
        self, template: str, operation: Mapping[str, Any]
    ) -> Tuple[Mapping[str, Any], ...]:
        """Operation parameters override path-level ones with the same (name, in)."""
        merged: Dict[Tuple[str, str], Mapping[str, Any]] = {}
        path_item = self._paths.get(template) or {}
        for raw in list(path_item.get("parameters") or []) + list(
            operation.get("parameters") or []
        ):
            param = self.deref(raw)
            if not isinstance(param, Mapping):
                continue
            merged[(str(param.get("name")), str(param.get("in")))] = param
        return tuple(merged.values())

    def resolve(self, path: str, method: str) -> ResolvedOperation:
        """
        Resolve a request path and verb to its operation.

        Args:
            path: Literal request path (e.g. "/pet/123")
            method: HTTP verb, any case

        Returns:
            ResolvedOperation for the first matching template

        Raises:
            PathNotFoundError: If no template declares the verb for this path
        """
        method_lower = (method or "").lower()
        path = path or ""

        operation = self._operation_for(path, method_lower)
        if operation is not None:
            template = path
        else:
            template = None
            for candidate, pattern in self._patterns:
                if not pattern.search(path):
                    continue
                operation = self._operation_for(candidate, method_lower)
                if operation is not None:
                    template = candidate
                    break

        if template is None or operation is None:
            raise PathNotFoundError(path, method_lower)

        logger.debug("[SpecIndex] {} {} -> {}", method_lower.upper(), path, template)
        return ResolvedOperation(
            template=template,
            method=method_lower,
            operation=operation,
            parameters=self._merged_parameters(template, operation),
        )

    def resolve_ref(self, ref: str) -> Any:
        """
        Follow a local JSON pointer such as "#/components/schemas/Pet".

        Raises:
            SpecInvalidError: For remote or dangling references
        """
        if not isinstance(ref, str) or not ref.startswith("#"):
            raise SpecInvalidError(f"Unsupported $ref: {ref!r}")

        node: Any = self.document
        pointer = ref[1:]
        if not pointer:
            return node
        for token in pointer.lstrip("/").split("/"):
            token = token.replace("~1", "/").replace("~0", "~")
            if isinstance(node, Mapping) and token in node:
                node = node[token]
            elif isinstance(node, list) and token.isdigit() and int(token) < len(node):
                node = node[int(token)]
            else:
                raise SpecInvalidError(f"Unresolvable $ref: {ref}")
        return node

    def deref(self, node: Any, max_hops: int = 16) -> Any:
        """Follow $ref chains on a node until a concrete object is reached."""
        hops = 0
        while isinstance(node, Mapping) and "$ref" in node:
            if hops >= max_hops:
                raise SpecInvalidError(f"$ref chain too long at {node['$ref']}")
            node = self.resolve_ref(node["$ref"])
            hops += 1
        return node


def media_schema(content: Any, content_type: str) -> Optional[Mapping[str, Any]]:
    """
    Pick the schema for a media type from an OpenAPI "content" map.

    Media type parameters ("; charset=utf-8") and case are ignored when the
    exact key is missing.
    """
    if not isinstance(content, Mapping):
        return None
    media = content.get(content_type)
    if media is None:
        base = content_type.split(";")[0].strip().lower()
        for key, value in content.items():
            if str(key).split(";")[0].strip().lower() == base:
                media = value
                break
    if isinstance(media, Mapping) and isinstance(media.get("schema"), Mapping):
        return media["schema"]
    return None
