"""
MCP tools for Langfuse prompt management.

Every tool returns a ``CallToolResult``: the JSON of the result on success,
or a readable error message with ``isError`` set. Failures never escape as
protocol errors.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from mcp import types
from pydantic import BaseModel

from promptmcp.core.manager import PromptManager
from promptmcp.core.models import (
    ListPromptsQuery,
    create_request_json_schema,
    parse_list_query,
    to_wire,
)

logger = logging.getLogger(__name__)

TOOL_NAMES = ("list_prompts", "create_prompt", "get_prompt", "update_labels")


def _create_prompt_schema() -> dict[str, Any]:
    union = create_request_json_schema()
    defs = union.pop("$defs", {})
    schema: dict[str, Any] = {
        "type": "object",
        "properties": {"prompt": union},
        "required": ["prompt"],
    }
    if defs:
        schema["$defs"] = defs
    return schema


GET_PROMPT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {
            "type": "string",
            "minLength": 1,
            "description": "The name of the prompt to get",
        },
        "version": {
            "type": "integer",
            "minimum": 1,
            "description": "The version of the prompt to get",
        },
        "label": {
            "type": "string",
            "description": "The label of the prompt to get. Defaults to 'production' "
                           "if version is not provided.",
        },
    },
    "required": ["name"],
}

UPDATE_LABELS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {
            "type": "string",
            "minLength": 1,
            "description": "The name of the prompt to relabel",
        },
        "version": {
            "type": "integer",
            "minimum": 1,
            "description": "The version of the prompt to relabel",
        },
        "newLabels": {
            "type": "array",
            "items": {"type": "string"},
            "description": "The labels the version should carry afterwards",
        },
    },
    "required": ["name", "version", "newLabels"],
}


def text_result(text: str, is_error: bool = False) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=is_error,
    )


def _to_json(result: Any) -> str:
    if isinstance(result, BaseModel):
        result = to_wire(result)
    return json.dumps(result, indent=2, ensure_ascii=False)


@dataclass(frozen=True)
class ToolSpec:
    """A tool definition and the coroutine that runs it."""
    name: str
    description: str
    input_schema: dict[str, Any]
    # Used in error messages: "Error <verb>: ..."
    verb: str
    run: Callable[[dict[str, Any]], Awaitable[Any]]

    def definition(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema,
        )


class PromptTools:
    """The four prompt tools, bound to one manager."""

    def __init__(self, manager: PromptManager):
        self.manager = manager
        specs = [
            ToolSpec(
                name="list_prompts",
                description="List all prompts in the Langfuse project",
                input_schema=ListPromptsQuery.model_json_schema(by_alias=True),
                verb="listing prompts",
                run=self._list_prompts,
            ),
            ToolSpec(
                name="create_prompt",
                description="Create a new prompt in the Langfuse project",
                input_schema=_create_prompt_schema(),
                verb="creating prompt",
                run=self._create_prompt,
            ),
            ToolSpec(
                name="get_prompt",
                description="Get a prompt from the Langfuse project",
                input_schema=GET_PROMPT_SCHEMA,
                verb="getting prompt",
                run=self._get_prompt,
            ),
            ToolSpec(
                name="update_labels",
                description="Update the labels of a prompt",
                input_schema=UPDATE_LABELS_SCHEMA,
                verb="updating labels",
                run=self._update_labels,
            ),
        ]
        self._tools = {spec.name: spec for spec in specs}

    def list_tools(self) -> list[types.Tool]:
        return [spec.definition() for spec in self._tools.values()]

    async def call(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
    ) -> types.CallToolResult:
        """Run a tool by name and wrap the outcome in a tool result."""
        spec = self._tools.get(name)
        if spec is None:
            return text_result(f"Unknown tool: {name}", is_error=True)

        try:
            result = await spec.run(arguments or {})
        except Exception as e:
            logger.warning(f"Tool {name} failed: {e}")
            return text_result(f"Error {spec.verb}: {e}", is_error=True)

        return text_result(_to_json(result))

    # =========================================================================
    # Tool bodies
    # =========================================================================

    async def _list_prompts(self, args: dict[str, Any]) -> Any:
        query = parse_list_query(args) if args else None
        return await self.manager.list_prompts(query)

    async def _create_prompt(self, args: dict[str, Any]) -> Any:
        return await self.manager.create_prompt(args["prompt"])

    async def _get_prompt(self, args: dict[str, Any]) -> Any:
        return await self.manager.get_prompt(
            args["name"],
            version=args.get("version"),
            label=args.get("label"),
        )

    async def _update_labels(self, args: dict[str, Any]) -> Any:
        return await self.manager.update_prompt(
            args["name"],
            args["version"],
            args["newLabels"],
        )
