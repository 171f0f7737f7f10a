"""
FastAPI application for promptmcp.

Serves the prompt MCP server at ``/mcp`` (streamable HTTP, stateless) next
to a couple of plain health/info routes. Can be deployed as a container,
a serverless function or a standalone server.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from promptmcp import __version__
from promptmcp.server.catalog import GUIDES
from promptmcp.server.handler import PromptMcpEndpoint
from promptmcp.server.tools import TOOL_NAMES

MCP_METHODS = ["GET", "POST", "DELETE"]


def create_app(endpoint: PromptMcpEndpoint | None = None) -> FastAPI:
    """
    Build the API.

    Args:
        endpoint: MCP endpoint to mount (default: configured from environment)
    """
    endpoint = endpoint or PromptMcpEndpoint()

    app = FastAPI(
        title="promptmcp",
        description="Langfuse prompt management over the Model Context Protocol",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["mcp-session-id"],
    )

    app.add_route("/mcp", endpoint, methods=MCP_METHODS)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.get("/info")
    async def api_info() -> dict[str, Any]:
        """What the MCP endpoint exposes."""
        settings = endpoint.server_settings
        return {
            "name": "promptmcp",
            "version": __version__,
            "server_name": settings.server_name,
            "tools": list(TOOL_NAMES),
            "prompts": [f"prompt-{name}" for name in settings.prompt_names] + list(GUIDES),
        }

    app.state.mcp_endpoint = endpoint
    return app


# =============================================================================
# Run Server
# =============================================================================


def run_server(
    host: str = "0.0.0.0",
    port: int = 8000,
    endpoint: PromptMcpEndpoint | None = None,
    log_level: str = "info",
):
    """Run the API server."""
    import uvicorn
    from dotenv import load_dotenv

    load_dotenv()
    uvicorn.run(create_app(endpoint), host=host, port=port, log_level=log_level.lower())


if __name__ == "__main__":
    run_server()
