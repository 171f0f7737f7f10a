"""
promptmcp - Langfuse prompt management over the Model Context Protocol.

A thin, validated client for the Langfuse prompt API plus an MCP server
that exposes it to agents as tools and prompt templates.
"""

from promptmcp.core.errors import (
    PromptClientError,
    PromptRequestError,
    PromptValidationError,
)
from promptmcp.core.manager import PromptManager
from promptmcp.core.models import (
    ChatPrompt,
    CreateChatPromptRequest,
    CreateTextPromptRequest,
    PromptMetaListResponse,
    TextPrompt,
)

__version__ = "0.1.0"
__all__ = [
    "PromptManager",
    "ChatPrompt",
    "TextPrompt",
    "PromptMetaListResponse",
    "CreateChatPromptRequest",
    "CreateTextPromptRequest",
    "PromptClientError",
    "PromptRequestError",
    "PromptValidationError",
]
