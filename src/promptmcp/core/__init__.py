"""Schemas, endpoints and the client for Langfuse prompt management."""

from promptmcp.core.errors import (
    PromptClientError,
    PromptRequestError,
    PromptValidationError,
)
from promptmcp.core.manager import PromptManager
from promptmcp.core.models import (
    ChatMessage,
    ChatPrompt,
    CreateChatPromptRequest,
    CreatePromptRequest,
    CreateTextPromptRequest,
    GetPromptQuery,
    ListPromptsQuery,
    Prompt,
    PromptMeta,
    PromptMetaListResponse,
    TextPrompt,
    UpdatePromptVersionRequest,
)

__all__ = [
    "PromptManager",
    "ChatMessage",
    "ChatPrompt",
    "TextPrompt",
    "Prompt",
    "PromptMeta",
    "PromptMetaListResponse",
    "CreatePromptRequest",
    "CreateChatPromptRequest",
    "CreateTextPromptRequest",
    "UpdatePromptVersionRequest",
    "ListPromptsQuery",
    "GetPromptQuery",
    "PromptClientError",
    "PromptRequestError",
    "PromptValidationError",
]
