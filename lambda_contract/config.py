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
Lambda Contract Configuration.

Centralized storage for process-wide settings and defaults.
Loads environment variables and provides typed access to them.

Per-validator options (apiSpec, transformers, flags) live in
lambda_contract.options; the values here only seed their defaults.
"""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_flag(var_name: str, default: str = "false") -> bool:
    """Read a boolean flag from the environment ("true", "1", "yes")."""
    return os.getenv(var_name, default).lower() in ("true", "1", "yes")


# ==================================================================================================
# Local Server Settings
# ==================================================================================================

# Server host for the local emulation server (default: 127.0.0.1)
# Use "0.0.0.0" to accept connections from other machines (e.g. inside Docker)
DEFAULT_SERVER_HOST: str = "127.0.0.1"
SERVER_HOST: str = os.getenv("SERVER_HOST", DEFAULT_SERVER_HOST)

# Server port (default: 3000, same as `sam local start-api`)
# Can be overridden by CLI: python main.py --port 9000
DEFAULT_SERVER_PORT: int = 3000
SERVER_PORT: int = int(os.getenv("SERVER_PORT", str(DEFAULT_SERVER_PORT)))

# ==================================================================================================
# Contract Defaults
# ==================================================================================================

# Media type used to pick request/response schemas from OpenAPI "content" maps,
# and the Content-Type header the local server sends back.
DEFAULT_CONTENT_TYPE: str = os.getenv("DEFAULT_CONTENT_TYPE", "application/json")

# Role used for response filtering when the caller's claims carry no role.
DEFAULT_ROLE_NAME: str = os.getenv("DEFAULT_ROLE_NAME", "default")

# Vendor extension listing the roles allowed to see a schema property.
# Example:
#   salary:
#     type: number
#     x-roles: [admin, payroll]
ROLE_EXTENSION_KEY: str = os.getenv("ROLE_EXTENSION_KEY", "x-roles")

# Coerce gateway string parameters (query, path, headers) to the declared
# scalar type before validation ("42" -> 42 for `type: integer`).
COERCE_PARAMETER_TYPES: bool = _env_flag("COERCE_PARAMETER_TYPES", "true")

# Maximum schema nesting followed while sanitizing payloads.
# Deeper (usually recursive) schemas are validated but not stripped further.
MAX_SCHEMA_DEPTH: int = int(os.getenv("MAX_SCHEMA_DEPTH", "32"))

# ==================================================================================================
# Logging Settings
# ==================================================================================================

# Log level for the application
# Available levels: TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL
# Default: INFO (recommended for production)
# Set to DEBUG to trace route resolution and stripped properties
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# ==================================================================================================
# Application Version
# ==================================================================================================

APP_VERSION: str = "1.2"
APP_TITLE: str = "Lambda Contract"
APP_DESCRIPTION: str = "OpenAPI request/response contract enforcement for AWS Lambda proxy handlers"
