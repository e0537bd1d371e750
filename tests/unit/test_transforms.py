# -*- coding: utf-8 -*-

"""
Unit tests for request/response transform hooks.
"""

import pytest

from lambda_contract.errors import HandlerDeclaredError
from lambda_contract.middleware.context import InvocationContext
from lambda_contract.middleware.handler_invoker import HandlerOutcome
from lambda_contract.middleware.transforms import (
    apply_request_transforms,
    apply_response_transform,
)
from lambda_contract.options import ContractOptions


SPEC = {"paths": {}}


def _options(**params):
    return ContractOptions.from_params({"apiSpec": SPEC, **params})


class TestRequestTransforms:
    """Tests for apply_request_transforms()."""

    def test_no_transformers_returns_same_context(self):
        """
        What it does: Verifies the context is returned as-is without hooks.
        Purpose: Ensure transforms are optional.
        """
        context = InvocationContext(event={"body": {"a": 1}})
        assert apply_request_transforms(_options(), context) is context

    def test_body_transformer_applied(self):
        """
        What it does: Verifies the body hook replaces event["body"].
        Purpose: Ensure the handler sees the transformed body.
        """
        options = _options(requestBodyTransformer=lambda body: {**body, "seen": True})
        context = InvocationContext(event={"body": {"name": "Rex"}})

        result = apply_request_transforms(options, context)
        print(f"Body: {result.event['body']}")
        assert result.event["body"] == {"name": "Rex", "seen": True}
        assert context.event["body"] == {"name": "Rex"}

    def test_empty_body_passed_as_empty_object(self):
        """
        What it does: Verifies a missing body reaches the hook as {}.
        Purpose: Ensure hooks never receive None.
        """
        received = []
        options = _options(requestBodyTransformer=lambda body: received.append(body) or body)
        apply_request_transforms(options, InvocationContext(event={"body": None}))
        assert received == [{}]

    @pytest.mark.parametrize("body", [[], 0, False, ""])
    def test_falsy_body_passed_unchanged(self, body):
        """
        What it does: Verifies empty arrays, zero, false and "" reach the hook as-is.
        Purpose: Ensure only a missing body is replaced by {}.
        """
        received = []
        options = _options(requestBodyTransformer=lambda value: received.append(value) or value)

        result = apply_request_transforms(options, InvocationContext(event={"body": body}))

        print(f"Received: {received!r}")
        assert received == [body]
        assert type(received[0]) is type(body)
        assert result.event["body"] == body

    def test_path_and_query_transformers(self):
        """
        What it does: Verifies the path and query hooks.
        Purpose: Ensure each hook writes its own event field.
        """
        options = _options(
            requestPathTransformer=lambda params: {k: v.upper() for k, v in params.items()},
            requestQueryTransformer=lambda query: {**query, "page": 1},
        )
        context = InvocationContext(
            event={"pathParameters": {"id": "abc"}, "queryStringParameters": None}
        )

        result = apply_request_transforms(options, context)
        assert result.event["pathParameters"] == {"id": "ABC"}
        assert result.event["queryStringParameters"] == {"page": 1}

    def test_structured_body_idempotent(self):
        """
        What it does: Verifies an identity hook returns a deep-equal body.
        Purpose: Ensure the transform step does not alter structured bodies.
        """
        body = {"name": "Rex", "tags": ["a", "b"], "meta": {"n": 1}}
        options = _options(requestBodyTransformer=lambda b: b)
        result = apply_request_transforms(options, InvocationContext(event={"body": body}))
        assert result.event["body"] == body


class TestResponseTransform:
    """Tests for apply_response_transform()."""

    def test_default_envelope_for_success(self):
        """
        What it does: Verifies the default envelope without a success hook.
        Purpose: Ensure structured payloads are serialized compactly.
        """
        outcome = HandlerOutcome(payload={"id": 1, "name": "Rex"}, status_code=201)
        result = apply_response_transform(_options(), outcome)
        print(f"Envelope: {result}")
        assert result == {"body": '{"id":1,"name":"Rex"}', "statusCode": 201}

    def test_success_transformer_used(self):
        """
        What it does: Verifies the success hook receives payload and status.
        Purpose: Ensure custom envelopes (headers etc.) are possible.
        """
        options = _options(
            responseSuccessTransformer=lambda payload, status: {
                "body": payload,
                "statusCode": status,
                "headers": {"X-Count": "1"},
            }
        )
        result = apply_response_transform(options, HandlerOutcome(payload=[1], status_code=200))
        assert result == {"body": [1], "statusCode": 200, "headers": {"X-Count": "1"}}

    def test_error_without_transformer_raises(self):
        """
        What it does: Verifies status >= 300 without an error hook is a fault.
        Purpose: Ensure the handler's status and message are carried.
        """
        outcome = HandlerOutcome(payload=None, status_code=404, message="Pet not found")
        with pytest.raises(HandlerDeclaredError) as exc_info:
            apply_response_transform(_options(), outcome)

        print(f"Error: {exc_info.value} ({exc_info.value.status_code})")
        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "Pet not found"

    def test_not_modified_is_a_fault(self):
        """
        What it does: Verifies a 304 without an error hook is also a fault.
        Purpose: Document that every status >= 300 takes the error path.
        """
        with pytest.raises(HandlerDeclaredError) as exc_info:
            apply_response_transform(_options(), HandlerOutcome(payload=None, status_code=304))
        assert exc_info.value.status_code == 304

    def test_error_transformer_used(self):
        """
        What it does: Verifies the error hook receives payload, status and message.
        Purpose: Ensure custom error envelopes are possible.
        """
        calls = []

        def on_error(payload, status, message):
            calls.append((payload, status, message))
            return {"body": message, "statusCode": status}

        options = _options(responseErrorTransformer=on_error)
        outcome = HandlerOutcome(payload={"id": 9}, status_code=409, message="Conflict")
        result = apply_response_transform(options, outcome)

        assert calls == [({"id": 9}, 409, "Conflict")]
        assert result == {"body": "Conflict", "statusCode": 409}
