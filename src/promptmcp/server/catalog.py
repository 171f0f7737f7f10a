"""
MCP prompt templates.

Two kinds of argument-less templates are exposed to agents:

- persona fetchers (``prompt-<name>``) that pull a managed prompt from
  Langfuse and hand it back verbatim as JSON
- static guides that explain when and how to call the prompt tools
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import partial
from typing import Awaitable, Callable, Sequence

from mcp import types

from promptmcp.core.manager import PromptManager
from promptmcp.core.models import to_wire


def assistant_message(text: str) -> types.GetPromptResult:
    """Wrap text as a single assistant message."""
    return types.GetPromptResult(
        messages=[
            types.PromptMessage(
                role="assistant",
                content=types.TextContent(type="text", text=text),
            )
        ]
    )


PUBLISH_GUIDE = """\
Your task: deploy a specific prompt version to production in a Langfuse project.

Step-by-step:
1. Make sure you know the exact prompt name and the version to deploy. If you \
are unsure, call the `list_prompts` tool (no arguments) or `get_prompt` to \
inspect a single prompt.
2. Call the `update_labels` tool with:
   - name: the prompt name
   - version: the integer version to publish
   - newLabels: an array that must contain "production" (keep any other \
labels the version should retain)
Example arguments:
{ "name": "movie-critic", "version": 3, "newLabels": ["production", "latest"] }

On success the tool returns the full updated prompt. The "production" label \
moves from whichever version held it before. Only call `update_labels` once \
you have confirmed the version exists."""

LIST_GUIDE = (
    "To inspect every prompt in the Langfuse project (names, versions, labels), "
    "call the `list_prompts` tool. All arguments are optional filters (`name`, "
    "`label`, `tag`, `page`, `limit`, `fromUpdatedAt`, `toUpdatedAt`). The "
    "result lists one entry per prompt name under `data`, with paging details "
    "under `meta`."
)

GET_GUIDE = (
    "Use the `get_prompt` tool when you need the full content of one prompt. "
    "Required: `name`. Optional: `version` (integer) or `label` (such as "
    "\"production\" or \"latest\"). Omit both to get the production version."
)

CREATE_GUIDE = """\
To create a prompt (a new name or a new version of an existing one) call the \
`create_prompt` tool with a `prompt` object.
Fields:
- type: "text" or "chat"
- name: the prompt name
- prompt: a string for text prompts, or a non-empty array of \
{ "role", "content" } messages for chat prompts
- labels: include "production" to deploy immediately, or leave empty to only \
store the version
- config / tags / commitMessage: optional metadata
Minimal text prompt:
{ "prompt": { "type": "text", "name": "greeting", "prompt": "Hello {{name}}" } }"""

GUIDES: dict[str, tuple[str, str]] = {
    "publish-to-production": (
        'Publish a prompt version to the "production" label',
        PUBLISH_GUIDE,
    ),
    "how-to-list-prompts": ("Instruction to list all prompts", LIST_GUIDE),
    "how-to-get-prompt": ("Instruction to fetch a single prompt", GET_GUIDE),
    "how-to-create-prompt": (
        "Instruction to create a prompt (text or chat)",
        CREATE_GUIDE,
    ),
}


@dataclass(frozen=True)
class PromptTemplate:
    """A named MCP prompt and the coroutine that renders it."""
    name: str
    description: str
    render: Callable[[], Awaitable[types.GetPromptResult]]


class PromptCatalog:
    """
    The MCP prompts served for one request.

    Persona fetchers call Langfuse and let errors propagate to the MCP layer,
    which reports them as protocol errors. Guides never touch the network.
    """

    def __init__(self, manager: PromptManager, prompt_names: Sequence[str] = ()):
        """
        Args:
            manager: Client used by the persona fetchers
            prompt_names: Langfuse prompt names to expose as ``prompt-<name>``
        """
        self.manager = manager
        self._templates: dict[str, PromptTemplate] = {}

        for name in prompt_names:
            self._add(
                f"prompt-{name}",
                f"Get the prompt named '{name}'",
                partial(self._fetch, name),
            )

        for name, (description, text) in GUIDES.items():
            self._add(name, description, partial(self._static, text))

    def _add(
        self,
        name: str,
        description: str,
        render: Callable[[], Awaitable[types.GetPromptResult]],
    ) -> None:
        self._templates[name] = PromptTemplate(name, description, render)

    @property
    def names(self) -> list[str]:
        return list(self._templates)

    def list_prompts(self) -> list[types.Prompt]:
        return [
            types.Prompt(name=t.name, description=t.description, arguments=[])
            for t in self._templates.values()
        ]

    async def get(
        self,
        name: str,
        arguments: dict[str, str] | None = None,
    ) -> types.GetPromptResult:
        """Render a template by name. Templates take no arguments."""
        template = self._templates.get(name)
        if template is None:
            raise ValueError(f"Unknown prompt: {name}")
        return await template.render()

    async def _fetch(self, name: str) -> types.GetPromptResult:
        prompt = await self.manager.get_prompt(name)
        return assistant_message(json.dumps(to_wire(prompt), indent=2, ensure_ascii=False))

    @staticmethod
    async def _static(text: str) -> types.GetPromptResult:
        return assistant_message(text)
