# -*- coding: utf-8 -*-

# Lambda Contract
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Lambda Contract - local API Gateway emulation entry point.

Loads an OpenAPI document and a handler, wraps the handler with a
ContractValidator and serves it over HTTP.

Usage:
    python main.py --spec openapi.yaml --handler app.handlers:create_pet
    python main.py --spec openapi.json --handler app:handler -p 9000 --validate-requests
"""

import argparse
import importlib
import json
import os
import sys
from typing import Any, Callable, Dict, Optional, Tuple

import uvicorn
import yaml
from loguru import logger

from lambda_contract.config import (
    APP_TITLE,
    APP_VERSION,
    DEFAULT_SERVER_HOST,
    DEFAULT_SERVER_PORT,
    LOG_LEVEL,
    SERVER_HOST,
    SERVER_PORT,
)
from lambda_contract.errors import SpecInvalidError
from lambda_contract.local_server import create_app
from lambda_contract.logging_setup import setup_logging
from lambda_contract.middleware import ContractValidator


def parse_cli_args() -> argparse.Namespace:
    """
    Parse command-line arguments.

    Host and port default to None so that resolve_server_config() can tell
    "not given" apart from an explicit value.
    """
    parser = argparse.ArgumentParser(
        prog="main.py",
        description=f"{APP_TITLE} - serve a Lambda handler behind an OpenAPI contract",
    )
    parser.add_argument("--spec", help="Path to the OpenAPI document (JSON or YAML)")
    parser.add_argument("--handler", help="Handler to wrap, as module.path:attribute")
    parser.add_argument(
        "-H",
        "--host",
        default=None,
        help=f"Server host (default: {DEFAULT_SERVER_HOST}, env: SERVER_HOST)",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help=f"Server port (default: {DEFAULT_SERVER_PORT}, env: SERVER_PORT)",
    )
    parser.add_argument(
        "--validate-requests", action="store_true", help="Validate and sanitize requests"
    )
    parser.add_argument(
        "--validate-responses", action="store_true", help="Validate handler responses"
    )
    parser.add_argument(
        "--remove-additional",
        action="store_true",
        help="Strip properties the schema does not declare (requests and responses)",
    )
    parser.add_argument(
        "--filter-by-role",
        action="store_true",
        help="Redact response properties the caller role may not see",
    )
    parser.add_argument(
        "--role-key", default=None, help="Authorizer claim holding the caller role"
    )
    parser.add_argument(
        "--role",
        default=None,
        help="Role claim value attached to every emulated request (requires --role-key)",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {APP_VERSION}"
    )
    return parser.parse_args()


def resolve_server_config(args: argparse.Namespace) -> Tuple[str, int]:
    """
    Resolve host and port. Priority: CLI > environment > defaults.
    """
    if args.host is not None:
        host = args.host
    elif SERVER_HOST != DEFAULT_SERVER_HOST:
        host = SERVER_HOST
    else:
        host = DEFAULT_SERVER_HOST

    if args.port is not None:
        port = args.port
    elif SERVER_PORT != DEFAULT_SERVER_PORT:
        port = SERVER_PORT
    else:
        port = DEFAULT_SERVER_PORT

    return host, port


def print_startup_banner(host: str, port: int) -> None:
    """Print the local server URLs."""
    display_host = "localhost" if host == "0.0.0.0" else host
    url = f"http://{display_host}:{port}"
    print()
    print(f"  {APP_TITLE} v{APP_VERSION}")
    print(f"  Server:  {url}")
    print(f"  Docs:    {url}/docs")
    print(f"  Health:  {url}/health")
    print()


def validate_configuration(args: argparse.Namespace) -> None:
    """
    Check the CLI arguments before anything is loaded.

    Exits with status 1 on a missing spec file, a malformed handler
    reference, an out-of-range port or --role without --role-key.
    """
    errors = []
    if not args.spec:
        errors.append("--spec is required")
    elif not os.path.isfile(args.spec):
        errors.append(f"Spec file not found: {args.spec}")

    if not args.handler:
        errors.append("--handler is required")
    elif ":" not in args.handler:
        errors.append(f"Handler must look like module.path:attribute, got {args.handler!r}")

    if args.port is not None and not 0 < args.port < 65536:
        errors.append(f"Port out of range: {args.port}")

    if args.role and not args.role_key:
        errors.append("--role requires --role-key")

    if errors:
        for error in errors:
            logger.error("[Config] {}", error)
        sys.exit(1)


def load_spec(path: str) -> Dict[str, Any]:
    """
    Load an OpenAPI document from a JSON or YAML file.

    Raises:
        SpecInvalidError: If the file cannot be parsed into a mapping
    """
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    try:
        if path.endswith(".json"):
            document = json.loads(text)
        else:
            document = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SpecInvalidError(f"Failed to parse {path}: {e}") from e
    if not isinstance(document, dict):
        raise SpecInvalidError(f"{path} does not contain an OpenAPI document")
    return document


def load_handler(reference: str) -> Callable[..., Any]:
    """
    Import a handler given as "module.path:attribute".

    Raises:
        SpecInvalidError: If the attribute is missing or not callable
    """
    module_name, _, attribute = reference.partition(":")
    module = importlib.import_module(module_name)
    handler = getattr(module, attribute, None)
    if not callable(handler):
        raise SpecInvalidError(f"Handler {reference} is not callable")
    return handler


def build_params(args: argparse.Namespace, spec: Dict[str, Any]) -> Dict[str, Any]:
    """Translate CLI flags into ContractValidator options."""
    return {
        "apiSpec": spec,
        "validateRequests": args.validate_requests,
        "validateResponses": args.validate_responses,
        "removeAdditionalRequestProps": args.remove_additional,
        "removeAdditionalResponseProps": args.remove_additional,
        "filterByRole": args.filter_by_role,
        "roleAuthorizerKey": args.role_key,
    }


def build_claims(args: argparse.Namespace) -> Optional[Dict[str, Any]]:
    """Authorizer claims for emulated requests, or None without --role-key and --role."""
    if args.role_key and args.role:
        return {args.role_key: args.role}
    return None


def main(argv_args: Optional[argparse.Namespace] = None) -> None:
    args = argv_args or parse_cli_args()
    setup_logging(LOG_LEVEL)
    validate_configuration(args)

    # Handler modules are imported relative to the working directory
    sys.path.insert(0, os.getcwd())
    try:
        validator = ContractValidator(
            build_params(args, load_spec(args.spec)), load_handler(args.handler)
        )
    except (SpecInvalidError, ImportError) as e:
        logger.error("[Startup] {}", e)
        sys.exit(1)

    host, port = resolve_server_config(args)
    print_startup_banner(host, port)
    logger.info("[Startup] Serving {} from {}", args.handler, args.spec)

    uvicorn.run(
        create_app(validator, claims=build_claims(args)), host=host, port=port, log_config=None
    )


if __name__ == "__main__":
    main()
