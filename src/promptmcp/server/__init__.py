"""MCP server exposing Langfuse prompt management to agents."""

from promptmcp.server.catalog import GUIDES, PromptCatalog
from promptmcp.server.handler import (
    PromptMcpEndpoint,
    build_server,
    create_mcp_handler,
    prompt_registration,
    register_prompt_server,
)
from promptmcp.server.tools import TOOL_NAMES, PromptTools

__all__ = [
    "PromptCatalog",
    "PromptTools",
    "PromptMcpEndpoint",
    "build_server",
    "create_mcp_handler",
    "prompt_registration",
    "register_prompt_server",
    "GUIDES",
    "TOOL_NAMES",
]
