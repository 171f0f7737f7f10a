"""
Per-request MCP handler.

Each incoming HTTP request gets its own prompt manager, built from the
caller's credentials, and its own stateless MCP server:

    request -> resolve credentials -> PromptManager -> register prompts/tools
            -> MCP streamable HTTP transport -> response
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Mapping

import httpx
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from promptmcp.config import ClientSettings, ServerSettings, resolve_connection
from promptmcp.core.manager import PromptManager
from promptmcp.server.catalog import PromptCatalog
from promptmcp.server.tools import PromptTools

logger = logging.getLogger(__name__)

RegisterFn = Callable[[Server], None]


def register_prompt_server(
    server: Server,
    catalog: PromptCatalog,
    tools: PromptTools,
) -> None:
    """Attach the prompt catalog and the tools to an MCP server."""

    @server.list_prompts()
    async def list_prompts() -> list[types.Prompt]:
        return catalog.list_prompts()

    @server.get_prompt()
    async def get_prompt(
        name: str,
        arguments: dict[str, str] | None,
    ) -> types.GetPromptResult:
        return await catalog.get(name, arguments)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return tools.list_tools()

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
        return await tools.call(name, arguments)


def prompt_registration(manager: PromptManager, settings: ServerSettings) -> RegisterFn:
    """Registration callback binding the catalog and tools to ``manager``."""

    def register(server: Server) -> None:
        register_prompt_server(
            server,
            PromptCatalog(manager, settings.prompt_names),
            PromptTools(manager),
        )

    return register


def build_server(
    manager: PromptManager,
    settings: ServerSettings | None = None,
) -> Server:
    """Create an MCP server exposing the prompt catalog and tools of ``manager``."""
    settings = settings or ServerSettings()
    server = Server(settings.server_name)
    prompt_registration(manager, settings)(server)
    return server


def create_mcp_handler(
    register: RegisterFn,
    server_name: str = "langfuse-prompts",
    json_response: bool = True,
) -> ASGIApp:
    """
    Turn a registration callback into an ASGI handler.

    Every call builds a fresh server, lets ``register`` attach its prompts
    and tools, and serves the single request over the streamable HTTP
    transport without keeping a session.
    """

    async def handle(scope: Scope, receive: Receive, send: Send) -> None:
        server = Server(server_name)
        register(server)

        sessions = StreamableHTTPSessionManager(
            app=server,
            json_response=json_response,
            stateless=True,
        )
        async with sessions.run():
            await sessions.handle_request(scope, receive, send)

    return handle


class PromptMcpEndpoint:
    """
    ASGI endpoint serving the prompt MCP server.

    Credentials come from the ``host``, ``publicKey`` and ``secretKey`` query
    parameters, falling back to the environment (see ``promptmcp.config``).

    Example:
        app = FastAPI()
        app.add_route("/mcp", PromptMcpEndpoint(), methods=["GET", "POST", "DELETE"])
    """

    def __init__(
        self,
        server_settings: ServerSettings | None = None,
        client_settings: ClientSettings | None = None,
        environ: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            server_settings: Personas and server name (default: from environment)
            client_settings: Timeout and retry policy (default: from environment)
            environ: Environment used for credential fallback (default: os.environ)
            transport: Custom httpx transport for the Langfuse calls
        """
        self.environ = os.environ if environ is None else environ
        self.server_settings = server_settings or ServerSettings.from_env(self.environ)
        self.client_settings = client_settings or ClientSettings.from_env(self.environ)
        self.transport = transport

    def build_manager(self, query: Mapping[str, str]) -> PromptManager:
        connection = resolve_connection(query, self.environ)
        if not connection.has_credentials:
            logger.warning(f"No Langfuse credentials for {connection.host}")
        return PromptManager.from_settings(
            connection,
            self.client_settings,
            transport=self.transport,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope)
        manager = self.build_manager(request.query_params)
        handler = create_mcp_handler(
            prompt_registration(manager, self.server_settings),
            self.server_settings.server_name,
        )
        await handler(scope, receive, send)
