# -*- coding: utf-8 -*-

"""
Unit tests for main.py CLI functions.
Tests for parse_cli_args(), resolve_server_config(), print_startup_banner(),
validate_configuration(), load_spec() and load_handler().
"""

import argparse
import json
import sys
from unittest.mock import patch

import pytest

from lambda_contract.errors import SpecInvalidError


def _args(**overrides):
    values = {
        "spec": None,
        "handler": None,
        "host": None,
        "port": None,
        "validate_requests": False,
        "validate_responses": False,
        "remove_additional": False,
        "filter_by_role": False,
        "role_key": None,
        "role": None,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


class TestParseCliArgs:
    """Tests for parse_cli_args() function."""

    def test_default_values(self):
        """
        What it does: Verifies that host and port default to None and flags to False.
        Purpose: Ensure that None indicates "use env or default" in priority resolution.
        """
        from main import parse_cli_args

        with patch.object(sys, "argv", ["main.py"]):
            args = parse_cli_args()

        print(f"args: {args}")
        assert args.host is None
        assert args.port is None
        assert args.validate_requests is False
        assert args.remove_additional is False

    def test_short_forms(self):
        """
        What it does: Verifies -H and -p are parsed.
        Purpose: Ensure short forms work.
        """
        from main import parse_cli_args

        with patch.object(sys, "argv", ["main.py", "-H", "0.0.0.0", "-p", "5000"]):
            args = parse_cli_args()

        assert args.host == "0.0.0.0"
        assert args.port == 5000

    def test_contract_flags(self):
        """
        What it does: Verifies spec, handler and validation flags are parsed.
        Purpose: Ensure the CLI can configure the validator.
        """
        from main import parse_cli_args

        argv = [
            "main.py", "--spec", "openapi.yaml", "--handler", "app:handler",
            "--validate-requests", "--validate-responses", "--remove-additional",
        ]
        with patch.object(sys, "argv", argv):
            args = parse_cli_args()

        assert args.spec == "openapi.yaml"
        assert args.handler == "app:handler"
        assert args.validate_requests and args.validate_responses and args.remove_additional

    def test_version_shows_app_version(self, capsys):
        """
        What it does: Verifies --version prints APP_VERSION and exits with 0.
        Purpose: Ensure version information is available from the CLI.
        """
        from main import parse_cli_args
        from lambda_contract.config import APP_VERSION

        with patch.object(sys, "argv", ["main.py", "--version"]):
            with pytest.raises(SystemExit) as exc_info:
                parse_cli_args()

        captured = capsys.readouterr()
        print(f"Output: {captured.out}")
        assert exc_info.value.code == 0
        assert APP_VERSION in captured.out


class TestResolveServerConfig:
    """Tests for resolve_server_config() priority: CLI > env > defaults."""

    def test_cli_args_take_priority_over_env(self):
        """
        What it does: Verifies CLI arguments override environment variables.
        Purpose: Ensure CLI has highest priority.
        """
        from main import resolve_server_config

        with (
            patch("main.SERVER_HOST", "0.0.0.0"),
            patch("main.SERVER_PORT", 8000),
            patch("main.DEFAULT_SERVER_HOST", "127.0.0.1"),
            patch("main.DEFAULT_SERVER_PORT", 3000),
        ):
            host, port = resolve_server_config(_args(host="10.0.0.1", port=9000))

        assert (host, port) == ("10.0.0.1", 9000)

    def test_env_vars_take_priority_over_defaults(self):
        """
        What it does: Verifies environment values are used when CLI is silent.
        Purpose: Ensure env has the middle priority.
        """
        from main import resolve_server_config

        with (
            patch("main.SERVER_HOST", "192.168.1.100"),
            patch("main.SERVER_PORT", 4000),
            patch("main.DEFAULT_SERVER_HOST", "127.0.0.1"),
            patch("main.DEFAULT_SERVER_PORT", 3000),
        ):
            host, port = resolve_server_config(_args())

        assert (host, port) == ("192.168.1.100", 4000)

    def test_defaults_used_when_nothing_set(self):
        """
        What it does: Verifies defaults are used without CLI or env values.
        Purpose: Ensure defaults have the lowest priority.
        """
        from main import resolve_server_config

        with (
            patch("main.SERVER_HOST", "127.0.0.1"),
            patch("main.SERVER_PORT", 3000),
            patch("main.DEFAULT_SERVER_HOST", "127.0.0.1"),
            patch("main.DEFAULT_SERVER_PORT", 3000),
        ):
            host, port = resolve_server_config(_args())

        assert (host, port) == ("127.0.0.1", 3000)


class TestPrintStartupBanner:
    """Tests for print_startup_banner() function."""

    def test_banner_contains_urls(self, capsys):
        """
        What it does: Verifies the banner shows server, docs and health URLs.
        Purpose: Ensure the user knows where the emulator listens.
        """
        from main import print_startup_banner

        print_startup_banner("0.0.0.0", 3000)
        captured = capsys.readouterr()

        assert "http://localhost:3000" in captured.out
        assert "/docs" in captured.out
        assert "/health" in captured.out


class TestValidateConfiguration:
    """Tests for validate_configuration() function."""

    def test_missing_spec_and_handler_exit(self):
        """
        What it does: Verifies missing --spec/--handler exits with code 1.
        Purpose: Ensure startup fails with a clear error instead of a traceback.
        """
        from main import validate_configuration

        with pytest.raises(SystemExit) as exc_info:
            validate_configuration(_args())
        assert exc_info.value.code == 1

    def test_malformed_handler_exits(self, tmp_path):
        """
        What it does: Verifies a handler reference without ":" is rejected.
        Purpose: Ensure "module:attribute" format is enforced.
        """
        from main import validate_configuration

        spec_file = tmp_path / "openapi.json"
        spec_file.write_text("{}")
        with pytest.raises(SystemExit):
            validate_configuration(_args(spec=str(spec_file), handler="app.handler"))

    def test_valid_configuration_passes(self, tmp_path):
        """
        What it does: Verifies a complete configuration passes.
        Purpose: Ensure no false positives.
        """
        from main import validate_configuration

        spec_file = tmp_path / "openapi.json"
        spec_file.write_text("{}")
        validate_configuration(_args(spec=str(spec_file), handler="app:handler", port=3000))


class TestLoaders:
    """Tests for load_spec(), load_handler() and build_params()."""

    def test_load_yaml_spec(self, tmp_path):
        """
        What it does: Verifies YAML documents are parsed.
        Purpose: Ensure the usual openapi.yaml works.
        """
        from main import load_spec

        spec_file = tmp_path / "openapi.yaml"
        spec_file.write_text("openapi: 3.0.0\npaths:\n  /pet:\n    get: {}\n")
        document = load_spec(str(spec_file))
        assert document["paths"] == {"/pet": {"get": {}}}

    def test_load_json_spec(self, tmp_path):
        """
        What it does: Verifies JSON documents are parsed.
        Purpose: Ensure openapi.json works.
        """
        from main import load_spec

        spec_file = tmp_path / "openapi.json"
        spec_file.write_text(json.dumps({"paths": {}}))
        assert load_spec(str(spec_file)) == {"paths": {}}

    def test_load_invalid_spec(self, tmp_path):
        """
        What it does: Verifies unparsable or non-mapping documents raise SpecInvalidError.
        Purpose: Ensure startup reports bad documents clearly.
        """
        from main import load_spec

        broken = tmp_path / "broken.json"
        broken.write_text("{not json")
        scalar = tmp_path / "scalar.yaml"
        scalar.write_text("just a string\n")

        with pytest.raises(SpecInvalidError):
            load_spec(str(broken))
        with pytest.raises(SpecInvalidError):
            load_spec(str(scalar))

    def test_load_handler(self):
        """
        What it does: Verifies "module:attribute" imports a callable.
        Purpose: Ensure handlers can be referenced from the CLI.
        """
        from main import load_handler

        assert load_handler("json:dumps") is json.dumps
        with pytest.raises(SpecInvalidError):
            load_handler("json:__doc__")

    def test_build_params(self):
        """
        What it does: Verifies CLI flags map to validator options.
        Purpose: Ensure --remove-additional applies to requests and responses.
        """
        from main import build_params

        params = build_params(_args(validate_requests=True, remove_additional=True), {"paths": {}})
        assert params["apiSpec"] == {"paths": {}}
        assert params["validateRequests"] is True
        assert params["validateResponses"] is False
        assert params["removeAdditionalRequestProps"] is True
        assert params["removeAdditionalResponseProps"] is True


class TestRoleFlags:
    """Tests for --filter-by-role, --role-key and --role."""

    def test_role_flags_parsed(self):
        """
        What it does: Verifies the role flags are parsed.
        Purpose: Ensure role filtering can be enabled from the CLI.
        """
        from main import parse_cli_args

        argv = ["main.py", "--filter-by-role", "--role-key", "custom:role", "--role", "admin"]
        with patch.object(sys, "argv", argv):
            args = parse_cli_args()

        assert args.filter_by_role is True
        assert args.role_key == "custom:role"
        assert args.role == "admin"

    def test_role_flags_reach_options_and_claims(self):
        """
        What it does: Verifies role flags map to validator options and emulated claims.
        Purpose: Ensure the emulator's role-filtering path is reachable.
        """
        from main import build_claims, build_params

        args = _args(filter_by_role=True, role_key="custom:role", role="auditor")
        params = build_params(args, {"paths": {}})

        print(f"params: {params}")
        assert params["filterByRole"] is True
        assert params["roleAuthorizerKey"] == "custom:role"
        assert build_claims(args) == {"custom:role": "auditor"}

    def test_no_claims_without_role(self):
        """
        What it does: Verifies no claims are attached unless both key and role are given.
        Purpose: Ensure anonymous requests fall back to the default role.
        """
        from main import build_claims

        assert build_claims(_args()) is None
        assert build_claims(_args(role_key="custom:role")) is None

    def test_role_without_key_exits(self, tmp_path):
        """
        What it does: Verifies --role without --role-key is rejected.
        Purpose: Ensure a claim value is never silently ignored.
        """
        from main import validate_configuration

        spec_file = tmp_path / "openapi.json"
        spec_file.write_text("{}")
        with pytest.raises(SystemExit) as exc_info:
            validate_configuration(_args(spec=str(spec_file), handler="app:handler", role="admin"))
        assert exc_info.value.code == 1
