"""
Configuration for the prompt client and the MCP server.

Connection credentials are resolved per request from an ordered list of
sources, first non-empty value wins:

    1. query parameters of the incoming request (``host``, ``publicKey``,
       ``secretKey``)
    2. environment variables (``LANGFUSE_HOST``, ``LANGFUSE_PUBLIC_KEY``,
       ``LANGFUSE_SECRET_KEY``)
    3. built-in default (only for ``host``)

Environment variables for the server:
    PROMPTMCP_TIMEOUT: HTTP timeout in seconds (default: 30)
    PROMPTMCP_MAX_RETRIES: attempts per remote call (default: 3)
    PROMPTMCP_RETRY_BACKOFF: base backoff in seconds (default: 0.5)
    PROMPTMCP_PERSONAS: comma-separated prompt names exposed as MCP prompts
    PROMPTMCP_SERVER_NAME: name announced to MCP clients
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

DEFAULT_HOST = "https://cloud.langfuse.com"
MISSION_REPORTER_PREFIX = "mission-reporter-"

# (query parameter, environment variable, default)
CONNECTION_SOURCES: dict[str, tuple[str, str, str]] = {
    "host": ("host", "LANGFUSE_HOST", DEFAULT_HOST),
    "public_key": ("publicKey", "LANGFUSE_PUBLIC_KEY", ""),
    "secret_key": ("secretKey", "LANGFUSE_SECRET_KEY", ""),
}


@dataclass(frozen=True)
class ConnectionSettings:
    """Where the Langfuse API lives and how to authenticate against it."""
    host: str = DEFAULT_HOST
    public_key: str = ""
    secret_key: str = ""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ConnectionSettings:
        """Resolve settings from the environment only."""
        return resolve_connection({}, environ)

    @property
    def has_credentials(self) -> bool:
        return bool(self.public_key and self.secret_key)


def resolve_connection(
    query: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ConnectionSettings:
    """
    Resolve connection settings: query parameter, then environment, then default.

    Args:
        query: Query parameters of the incoming request
        environ: Environment mapping (defaults to ``os.environ``)
    """
    query = query or {}
    environ = os.environ if environ is None else environ

    values = {}
    for attr, (param, env_var, default) in CONNECTION_SOURCES.items():
        values[attr] = query.get(param) or environ.get(env_var) or default
    return ConnectionSettings(**values)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff for transient failures."""
    attempts: int = 3
    backoff: float = 0.5
    max_backoff: float = 4.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RetryPolicy:
        environ = os.environ if environ is None else environ
        return cls(
            attempts=max(1, int(environ.get("PROMPTMCP_MAX_RETRIES", "3"))),
            backoff=float(environ.get("PROMPTMCP_RETRY_BACKOFF", "0.5")),
        )


@dataclass(frozen=True)
class ClientSettings:
    """Transport settings shared by every prompt manager."""
    timeout: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ClientSettings:
        environ = os.environ if environ is None else environ
        return cls(
            timeout=float(environ.get("PROMPTMCP_TIMEOUT", "30")),
            retry=RetryPolicy.from_env(environ),
        )


@dataclass(frozen=True)
class ServerSettings:
    """What the MCP server exposes besides the fixed tools."""
    personas: tuple[str, ...] = ()
    server_name: str = "langfuse-prompts"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerSettings:
        environ = os.environ if environ is None else environ
        raw = environ.get("PROMPTMCP_PERSONAS", "")
        return cls(
            personas=parse_personas(raw),
            server_name=environ.get("PROMPTMCP_SERVER_NAME", "langfuse-prompts"),
        )

    @property
    def prompt_names(self) -> list[str]:
        """Personas followed by their mission-reporter variants."""
        return list(self.personas) + [
            f"{MISSION_REPORTER_PREFIX}{name}" for name in self.personas
        ]


def parse_personas(raw: str) -> tuple[str, ...]:
    """Split a comma-separated roster, dropping blanks and duplicates."""
    names: list[str] = []
    for part in raw.split(","):
        name = part.strip()
        if name and name not in names:
            names.append(name)
    return tuple(names)
