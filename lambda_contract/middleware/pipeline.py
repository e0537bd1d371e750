# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Middleware pipeline orchestrator.

Runs the contract stages around a wrapped Lambda handler in a fixed order:
  1. Route resolution        - SpecIndex.resolve (when any check is enabled)
  2. RequestSanitizer        - validate/sanitize body, query, headers, path params
  3. Request transforms      - body, path parameter and query transformers
  4. HandlerInvoker          - call the business handler (sync or async)
  5. Response transform      - success/error transformer or default envelope
  6. Envelope check          - body and statusCode must be present
  7. ResponseFilter          - schema validation and role redaction
  8. ResultTranslator        - any fault above becomes an error envelope

All per-call state lives in an InvocationContext built inside process(),
so one ContractValidator may serve concurrent invocations.
"""

import asyncio
import functools
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from loguru import logger

from lambda_contract.middleware.context import InvocationContext, normalize_event
from lambda_contract.middleware.handler_invoker import invoke_handler
from lambda_contract.middleware.request_sanitizer import sanitize_request
from lambda_contract.middleware.response_filter import (
    filter_response,
    resolve_role,
    select_response_mode,
)
from lambda_contract.middleware.result_translator import ensure_envelope, error_envelope
from lambda_contract.middleware.transforms import (
    apply_request_transforms,
    apply_response_transform,
)
from lambda_contract.options import ContractOptions
from lambda_contract.schema_engine import SchemaEngine
from lambda_contract.spec_index import SpecIndex

Callback = Callable[[Optional[BaseException], Dict[str, Any]], Any]


def _deliver(envelope: Dict[str, Any], callback: Optional[Callback]) -> Optional[Dict[str, Any]]:
    """Hand the envelope to a completion callback, or return it."""
    if callback is not None:
        callback(None, envelope)
        return None
    return envelope


class ContractValidator:
    """
    Wraps a Lambda handler with OpenAPI request/response enforcement.

    Example:
        >>> validator = ContractValidator(
        ...     {"apiSpec": spec, "validateRequests": True, "removeAdditionalRequestProps": True},
        ...     create_pet,
        ... )
        >>> lambda_handler = validator.install()

    Raises:
        SpecInvalidError: At construction, if the spec or options are unusable
    """

    def __init__(self, params: Mapping[str, Any], handler: Callable[..., Any]):
        self.options = ContractOptions.from_params(params)
        self.index = SpecIndex(self.options.api_spec)
        self.engine = SchemaEngine(self.index, self.options.validator_options)
        self.response_mode = select_response_mode(self.options)
        self.handler = handler

    async def process(self, event: Mapping[str, Any], lambda_context: Any = None) -> Dict[str, Any]:
        """
        Run the full pipeline for one invocation.

        Args:
            event: API Gateway proxy event (not modified)
            lambda_context: Platform context, passed through to the handler

        Returns:
            Response envelope; faults are returned as error envelopes
        """
        try:
            normalized = normalize_event(event)
            context = InvocationContext(
                event=normalized,
                lambda_context=lambda_context,
                role=resolve_role(normalized, self.options),
            )

            if self.options.needs_route:
                context = replace(
                    context, operation=self.index.resolve(context.path, context.method)
                )

            if self.options.validate_requests and context.operation is not None:
                context = self._sanitize(context)

            context = apply_request_transforms(self.options, context)

            outcome = await invoke_handler(self.handler, context)
            response = ensure_envelope(apply_response_transform(self.options, outcome))

            return filter_response(
                self.engine,
                self.options,
                self.response_mode,
                context.operation,
                response,
                role=context.role,
                path=context.path,
            )
        except Exception as exc:
            return error_envelope(exc)

    def process_sync(self, event: Mapping[str, Any], lambda_context: Any = None) -> Dict[str, Any]:
        """
        Blocking counterpart of process().

        asyncio.run() refuses to start inside a running event loop, so in that
        case the invocation runs on a fresh loop in a worker thread.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.process(event, lambda_context))

        logger.debug("[Pipeline] Event loop already running, invoking on a worker thread")
        with ThreadPoolExecutor(max_workers=1) as executor:
            return executor.submit(asyncio.run, self.process(event, lambda_context)).result()

    def _sanitize(self, context: InvocationContext) -> InvocationContext:
        sanitized = sanitize_request(
            self.engine,
            context.operation,
            context.event,
            self.options.content_type,
            remove_additional=self.options.remove_additional_request_props,
        )
        event = context.event
        return context.with_event(
            body=sanitized.body,
            headers=sanitized.headers if event.get("headers") is not None else None,
            queryStringParameters=(
                sanitized.query if event.get("queryStringParameters") is not None else None
            ),
            pathParameters=(
                sanitized.path_parameters if event.get("pathParameters") is not None else None
            ),
        )

    def install(self) -> Callable[..., Optional[Dict[str, Any]]]:
        """
        Return a synchronous Lambda handler.

        The handler accepts (event, context=None, callback=None). With a
        callback the envelope is delivered as callback(None, envelope);
        otherwise it is returned. Inside a running event loop the call
        blocks that loop until the invocation finishes; async hosts should
        prefer install_async().
        """

        @functools.wraps(self.handler)
        def lambda_handler(
            event: Mapping[str, Any], context: Any = None, callback: Optional[Callback] = None
        ) -> Optional[Dict[str, Any]]:
            return _deliver(self.process_sync(event, context), callback)

        return lambda_handler

    def install_async(self) -> Callable[..., Awaitable[Optional[Dict[str, Any]]]]:
        """Return the coroutine counterpart of install()."""

        @functools.wraps(self.handler)
        async def lambda_handler(
            event: Mapping[str, Any], context: Any = None, callback: Optional[Callback] = None
        ) -> Optional[Dict[str, Any]]:
            return _deliver(await self.process(event, context), callback)

        return lambda_handler


def contract(params: Mapping[str, Any], asynchronous: bool = False) -> Callable:
    """
    Decorator form of ContractValidator.

    Example:
        >>> @contract({"apiSpec": spec, "validateResponses": True})
        ... def lambda_handler(event, context):
        ...     return [{"id": 1}, 200]
    """

    def decorator(handler: Callable[..., Any]) -> Callable[..., Any]:
        validator = ContractValidator(params, handler)
        return validator.install_async() if asynchronous else validator.install()

    return decorator
