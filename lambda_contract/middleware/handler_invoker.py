# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Invocation of the wrapped business handler.

The handler is called as handler(event, context) and may be a plain function
or a coroutine function. It must return [payload, statusCode] or
[payload, statusCode, message]; it owns the status code for its own
business and error conditions. Exceptions it raises are not caught here.
"""

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from lambda_contract.errors import EnvelopeContractError
from lambda_contract.middleware.context import InvocationContext


@dataclass(frozen=True)
class HandlerOutcome:
    """
    Declared result of a handler.

    Attributes:
        payload: Response data
        status_code: HTTP status chosen by the handler
        message: Error message for non-success statuses
    """

    payload: Any
    status_code: int
    message: str = ""

    @property
    def is_success(self) -> bool:
        return self.status_code < 300

    @classmethod
    def from_result(cls, result: Any) -> "HandlerOutcome":
        """
        Build an outcome from the handler's return value.

        Raises:
            EnvelopeContractError: If the value is not a 2- or 3-element sequence
                                   with an integer status code
        """
        if isinstance(result, (str, bytes, dict)) or not isinstance(result, Sequence):
            raise EnvelopeContractError(
                "Handler must return [response, statusCode] or [response, statusCode, message]"
            )
        if len(result) not in (2, 3):
            raise EnvelopeContractError(
                f"Handler returned {len(result)} elements, expected 2 or 3"
            )
        status_code = result[1]
        if isinstance(status_code, bool) or not isinstance(status_code, int):
            raise EnvelopeContractError(f"Handler returned invalid statusCode: {status_code!r}")
        message = result[2] if len(result) == 3 and result[2] is not None else ""
        return cls(payload=result[0], status_code=status_code, message=str(message))


async def invoke_handler(
    handler: Callable[..., Any], context: InvocationContext
) -> HandlerOutcome:
    """
    Call the handler with the normalized event and await it when needed.

    Args:
        handler: Business handler
        context: Invocation context holding the event and the platform context

    Returns:
        HandlerOutcome built from the handler's return value
    """
    result = handler(context.event, context.lambda_context)
    if inspect.isawaitable(result):
        result = await result
    return HandlerOutcome.from_result(result)
