"""
Application configuration module.

Loads environment variables (from a .env file or the system environment)
and exposes them as simple Python constants used by the rest of the
service: the name of the singleton instance, the HTTP listener, the
durable-state backend and its database connection details.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

# --- Service identity ---
# Every routed request resolves to the one instance registered under this
# name. Changing it starts a distinct instance with independent state.
SERVICE_NAME = os.getenv("MCP_SERVICE_NAME", "MySingleMCPInstance")

# Server info advertised to MCP clients during initialization.
SERVER_NAME = "Auth Calculator"
SERVER_VERSION = "1.0.0"

# --- HTTP listener ---
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Routing ---
# Prefixes the front router forwards to the instance.
ROUTED_PREFIXES = ("/mcp", "/sse")

# Exact paths understood by the instance itself.
UNARY_PATH = "/mcp"
STREAMING_PATH = "/sse"
STREAMING_MESSAGE_PATH = "/sse/message"

# --- Durable state ---
# "memory" keeps instance state in the process, "postgres" stores it in
# the database described below.
STATE_BACKEND = os.getenv("STATE_BACKEND", "memory").strip().lower()

# Each variable falls back to a sensible default for local development.
DB_HOST = os.getenv("DB_HOST", "127.0.0.1")
DB_PORT = int(os.getenv("DB_PORT", "5433"))
DB_NAME = os.getenv("DB_NAME", "calc_mcp")
DB_USER = os.getenv("DB_USER", "calc_mcp")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")
