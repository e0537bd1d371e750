# -*- coding: utf-8 -*-

"""
Unit tests for the per-invocation context and JSON body helpers.
"""

import dataclasses

import pytest

from lambda_contract.json_utils import dump_json, is_structured, parse_json_text
from lambda_contract.middleware.context import InvocationContext, normalize_event


class TestParseJsonText:
    """Tests for parse_json_text()."""

    @pytest.mark.parametrize(
        "value, expected",
        [('{"a":1}', {"a": 1}), ("[1,2]", [1, 2]), (b'{"a":1}', {"a": 1})],
    )
    def test_objects_and_arrays_parsed(self, value, expected):
        """
        What it does: Verifies JSON object/array text is parsed.
        Purpose: Ensure serialized bodies are detected.
        """
        assert parse_json_text(value) == (True, expected)

    @pytest.mark.parametrize("value", ["42", "true", '"text"', "not json", "", None, {"a": 1}, 5])
    def test_everything_else_untouched(self, value):
        """
        What it does: Verifies scalars, plain text and structured values are left alone.
        Purpose: Ensure only serialized objects/arrays are converted.
        """
        assert parse_json_text(value) == (False, value)

    def test_dump_and_structured(self):
        """
        What it does: Verifies compact serialization and the structured check.
        Purpose: Ensure envelope bodies use compact separators.
        """
        assert dump_json({"a": [1, 2], "b": "é"}) == '{"a":[1,2],"b":"é"}'
        assert is_structured({}) and is_structured([])
        assert not is_structured("{}")


class TestNormalizeEvent:
    """Tests for normalize_event()."""

    def test_json_body_parsed(self):
        """
        What it does: Verifies a JSON text body becomes structured.
        Purpose: Ensure downstream stages work on structured data.
        """
        event = {"body": '{"name":"Rex"}', "headers": {"A": "1"}}
        normalized = normalize_event(event)
        assert normalized["body"] == {"name": "Rex"}
        assert event["body"] == '{"name":"Rex"}'

    def test_text_body_kept(self):
        """
        What it does: Verifies a non-JSON body stays text.
        Purpose: Ensure plain text bodies are not rejected early.
        """
        assert normalize_event({"body": "hello"})["body"] == "hello"

    def test_deep_copy(self):
        """
        What it does: Verifies nested structures are copied.
        Purpose: Ensure later stages cannot mutate the caller's event.
        """
        event = {"headers": {"A": "1"}}
        normalized = normalize_event(event)
        normalized["headers"]["A"] = "2"
        assert event["headers"]["A"] == "1"

    def test_none_event(self):
        """
        What it does: Verifies a None event normalizes to {}.
        Purpose: Ensure the pipeline reports a route fault instead of crashing.
        """
        assert normalize_event(None) == {}


class TestInvocationContext:
    """Tests for InvocationContext."""

    def test_frozen(self):
        """
        What it does: Verifies the context cannot be mutated.
        Purpose: Ensure stages produce new contexts instead of sharing state.
        """
        context = InvocationContext(event={})
        with pytest.raises(dataclasses.FrozenInstanceError):
            context.role = "admin"

    def test_with_event_returns_new_context(self):
        """
        What it does: Verifies with_event() replaces fields on a copy.
        Purpose: Ensure earlier contexts keep their event.
        """
        context = InvocationContext(event={"path": "/pet", "httpMethod": "GET", "body": None}, role="r")
        updated = context.with_event(body={"a": 1})

        assert updated.event["body"] == {"a": 1}
        assert context.event["body"] is None
        assert updated.role == "r"
        assert updated.path == "/pet"
        assert updated.method == "GET"

    def test_missing_path_and_method(self):
        """
        What it does: Verifies path/method default to empty strings.
        Purpose: Ensure resolution receives strings.
        """
        context = InvocationContext(event={})
        assert context.path == ""
        assert context.method == ""
