"""
Tests for the MCP tools, prompt catalog, HTTP app and CLI.
"""

import base64
import json

import httpx
import pytest
from typer.testing import CliRunner

from promptmcp.api.server import create_app
from promptmcp.cli import app as cli_app
from promptmcp.config import ClientSettings, RetryPolicy, ServerSettings
from promptmcp.core.errors import PromptRequestError
from promptmcp.server.catalog import GUIDES, PUBLISH_GUIDE, PromptCatalog
from promptmcp.server.handler import PromptMcpEndpoint
from promptmcp.server.tools import TOOL_NAMES, PromptTools

from conftest import HOST


def result_text(result) -> str:
    return result.content[0].text


# =============================================================================
# Tool Tests
# =============================================================================

class TestPromptTools:
    """Tests for the four prompt tools."""

    def test_tool_names(self, manager):
        """Test the exposed tools and their schemas."""
        tools = PromptTools(manager).list_tools()

        assert [t.name for t in tools] == list(TOOL_NAMES)
        by_name = {t.name: t for t in tools}
        assert by_name["get_prompt"].inputSchema["required"] == ["name"]
        assert by_name["create_prompt"].inputSchema["required"] == ["prompt"]
        assert "newLabels" in by_name["update_labels"].inputSchema["properties"]

    @pytest.mark.asyncio
    async def test_get_prompt(self, manager, langfuse, text_prompt_body):
        """Test get_prompt returns the prompt JSON verbatim."""
        langfuse.reply(200, json=text_prompt_body)

        result = await PromptTools(manager).call("get_prompt", {"name": "movie-critic"})

        assert result.isError is False
        assert json.loads(result_text(result)) == text_prompt_body
        assert str(langfuse.last.url) == f"{HOST}/api/public/v2/prompts/movie-critic"

    @pytest.mark.asyncio
    async def test_get_prompt_by_version(self, manager, langfuse, text_prompt_body):
        """Test version and label are passed on."""
        langfuse.reply(200, json=text_prompt_body)

        await PromptTools(manager).call(
            "get_prompt", {"name": "movie-critic", "version": 3, "label": "latest"}
        )

        assert langfuse.last.url.query == b"version=3&label=latest"

    @pytest.mark.asyncio
    async def test_list_prompts(self, manager, langfuse, prompt_list_body):
        """Test list_prompts with and without filters."""
        langfuse.reply(200, json=prompt_list_body)
        tools = PromptTools(manager)

        result = await tools.call("list_prompts", {})
        assert json.loads(result_text(result)) == prompt_list_body
        assert langfuse.last.url.query == b""

        await tools.call("list_prompts", {"label": "production"})
        assert langfuse.last.url.params["label"] == "production"

    @pytest.mark.asyncio
    async def test_create_prompt(self, manager, langfuse, chat_prompt_body):
        """Test create_prompt unwraps the prompt argument."""
        langfuse.reply(201, json=chat_prompt_body)
        prompt = {
            "type": "chat",
            "name": "support-agent",
            "prompt": chat_prompt_body["prompt"],
        }

        result = await PromptTools(manager).call("create_prompt", {"prompt": prompt})

        assert result.isError is False
        assert langfuse.last_json() == prompt

    @pytest.mark.asyncio
    async def test_create_prompt_invalid(self, manager, langfuse):
        """Test an invalid prompt is reported without calling the service."""
        result = await PromptTools(manager).call(
            "create_prompt", {"prompt": {"type": "chat", "name": "x", "prompt": []}}
        )

        assert result.isError is True
        assert result_text(result).startswith("Error creating prompt:")
        assert langfuse.calls == 0

    @pytest.mark.asyncio
    async def test_update_labels(self, manager, langfuse, text_prompt_body):
        """Test update_labels relabels a version."""
        langfuse.reply(200, json=text_prompt_body)

        result = await PromptTools(manager).call(
            "update_labels",
            {"name": "movie-critic", "version": 3, "newLabels": ["production", "latest"]},
        )

        assert result.isError is False
        assert langfuse.last.method == "PATCH"
        assert langfuse.last_json() == {"newLabels": ["production", "latest"]}

    @pytest.mark.asyncio
    async def test_update_labels_not_found(self, manager, langfuse):
        """Test a 404 becomes an error result with status and body."""
        langfuse.reply(404, text="Not Found")

        result = await PromptTools(manager).call(
            "update_labels", {"name": "x", "version": 99, "newLabels": ["production"]}
        )

        assert result.isError is True
        text = result_text(result)
        assert text.startswith("Error updating labels:")
        assert "404" in text
        assert "Not Found" in text

    @pytest.mark.asyncio
    async def test_connection_failure(self, manager, langfuse):
        """Test transport failures become error results."""
        langfuse.fail("connection refused")

        result = await PromptTools(manager).call("list_prompts", {})

        assert result.isError is True
        assert result_text(result).startswith("Error listing prompts:")

    @pytest.mark.asyncio
    async def test_unknown_tool(self, manager):
        """Test an unknown tool name."""
        result = await PromptTools(manager).call("delete_prompt", {})

        assert result.isError is True
        assert "delete_prompt" in result_text(result)

    @pytest.mark.asyncio
    async def test_result_is_service_body(self, manager, langfuse):
        """Test the result text is the pretty-printed body as sent."""
        body = {
            "type": "chat",
            "prompt": [{"role": "user", "content": "Grüße, {{name}}"}],
            "name": "greeter",
            "version": 2,
            "labels": ["latest"],
            "tags": [],
            "config": {"temperature": 0.2},
        }
        langfuse.reply(200, json=body)

        result = await PromptTools(manager).call("get_prompt", {"name": "greeter"})

        assert result_text(result) == json.dumps(body, indent=2, ensure_ascii=False)

    @pytest.mark.asyncio
    async def test_update_labels_integral_float_version(self, manager, langfuse, text_prompt_body):
        """Test a version given as 3.0 targets version 3."""
        langfuse.reply(200, json=text_prompt_body)

        result = await PromptTools(manager).call(
            "update_labels", {"name": "movie-critic", "version": 3.0, "newLabels": ["production"]}
        )

        assert result.isError is False
        assert str(langfuse.last.url).endswith("/prompts/movie-critic/versions/3")

    @pytest.mark.asyncio
    async def test_get_prompt_fractional_version(self, manager, langfuse):
        """Test a fractional version is reported without calling the service."""
        result = await PromptTools(manager).call("get_prompt", {"name": "x", "version": 2.5})

        assert result.isError is True
        assert result_text(result).startswith("Error getting prompt:")
        assert langfuse.calls == 0


# =============================================================================
# Catalog Tests
# =============================================================================

class TestPromptCatalog:
    """Tests for MCP prompt templates."""

    def test_names(self, manager):
        """Test personas, mission reporters and guides are listed."""
        settings = ServerSettings(personas=("denis", "jess"))

        catalog = PromptCatalog(manager, settings.prompt_names)

        assert catalog.names == [
            "prompt-denis",
            "prompt-jess",
            "prompt-mission-reporter-denis",
            "prompt-mission-reporter-jess",
            *GUIDES,
        ]
        assert all(p.arguments == [] for p in catalog.list_prompts())

    def test_guides_only(self, manager):
        """Test an empty roster still serves the guides."""
        assert PromptCatalog(manager).names == list(GUIDES)

    @pytest.mark.asyncio
    async def test_guide(self, manager, langfuse):
        """Test guides are static assistant messages."""
        result = await PromptCatalog(manager).get("publish-to-production")

        message = result.messages[0]
        assert message.role == "assistant"
        assert message.content.text == PUBLISH_GUIDE
        assert "update_labels" in message.content.text
        assert langfuse.calls == 0

    @pytest.mark.asyncio
    async def test_persona(self, manager, langfuse, text_prompt_body):
        """Test a persona template returns the fetched prompt as JSON."""
        langfuse.reply(200, json=text_prompt_body)
        catalog = PromptCatalog(manager, ["denis"])

        result = await catalog.get("prompt-denis")

        assert json.loads(result.messages[0].content.text) == text_prompt_body
        assert str(langfuse.last.url) == f"{HOST}/api/public/v2/prompts/denis"

    @pytest.mark.asyncio
    async def test_persona_error(self, manager, langfuse):
        """Test fetch errors propagate."""
        langfuse.reply(404, text="Not Found")
        settings = ServerSettings(personas=("denis",))
        catalog = PromptCatalog(manager, settings.prompt_names)

        with pytest.raises(PromptRequestError) as exc_info:
            await catalog.get("prompt-mission-reporter-denis")

        assert exc_info.value.status_code == 404
        assert langfuse.calls == 1
        assert str(langfuse.last.url).endswith("/prompts/mission-reporter-denis")

    @pytest.mark.asyncio
    async def test_unknown(self, manager):
        """Test an unknown template name."""
        with pytest.raises(ValueError, match="Unknown prompt"):
            await PromptCatalog(manager).get("prompt-nobody")


# =============================================================================
# HTTP Tests
# =============================================================================

MCP_HEADERS = {
    "Accept": "application/json, text/event-stream",
    "Content-Type": "application/json",
}


@pytest.fixture
def api(langfuse):
    """The FastAPI app, with Langfuse replaced by the fake service."""
    endpoint = PromptMcpEndpoint(
        server_settings=ServerSettings(personas=("denis",)),
        client_settings=ClientSettings(retry=RetryPolicy(attempts=1, backoff=0)),
        environ={},
        transport=httpx.MockTransport(langfuse),
    )
    return create_app(endpoint)


def rpc(method: str, params: dict | None = None) -> dict:
    return {"jsonrpc": "2.0", "id": 1, "method": method, "params": params or {}}


class TestApi:
    """Tests for the HTTP surface."""

    @pytest.mark.asyncio
    async def test_health(self, api):
        """Test the health route."""
        transport = httpx.ASGITransport(app=api)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_info(self, api):
        """Test the info route lists tools and prompts."""
        transport = httpx.ASGITransport(app=api)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/info")

        data = response.json()
        assert data["tools"] == list(TOOL_NAMES)
        assert "prompt-denis" in data["prompts"]
        assert "prompt-mission-reporter-denis" in data["prompts"]

    @pytest.mark.asyncio
    async def test_list_tools(self, api):
        """Test tools/list over streamable HTTP without a session."""
        transport = httpx.ASGITransport(app=api)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/mcp", json=rpc("tools/list"), headers=MCP_HEADERS)

        assert response.status_code == 200
        tools = response.json()["result"]["tools"]
        assert [t["name"] for t in tools] == list(TOOL_NAMES)

    @pytest.mark.asyncio
    async def test_call_tool_with_query_credentials(self, api, langfuse, text_prompt_body):
        """Test credentials from the query string reach Langfuse."""
        langfuse.reply(200, json=text_prompt_body)

        transport = httpx.ASGITransport(app=api)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post(
                "/mcp",
                params={"host": "https://eu.langfuse.test", "publicKey": "pk-q", "secretKey": "sk-q"},
                json=rpc("tools/call", {"name": "get_prompt", "arguments": {"name": "movie-critic"}}),
                headers=MCP_HEADERS,
            )

        result = response.json()["result"]
        assert result["isError"] is False
        assert json.loads(result["content"][0]["text"]) == text_prompt_body

        token = base64.b64encode(b"pk-q:sk-q").decode()
        assert langfuse.last.headers["Authorization"] == f"Basic {token}"
        assert str(langfuse.last.url) == "https://eu.langfuse.test/api/public/v2/prompts/movie-critic"

    @pytest.mark.asyncio
    async def test_call_tool_invalid_arguments(self, api, langfuse):
        """Test arguments failing the input schema become an error result."""
        transport = httpx.ASGITransport(app=api)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post(
                "/mcp",
                json=rpc("tools/call", {"name": "update_labels", "arguments": {"name": "x"}}),
                headers=MCP_HEADERS,
            )

        assert response.json()["result"]["isError"] is True
        assert langfuse.calls == 0

    @pytest.mark.asyncio
    async def test_get_persona_prompt(self, api, langfuse, chat_prompt_body):
        """Test prompts/get for a persona template."""
        langfuse.reply(200, json=chat_prompt_body)

        transport = httpx.ASGITransport(app=api)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post(
                "/mcp",
                json=rpc("prompts/get", {"name": "prompt-denis"}),
                headers=MCP_HEADERS,
            )

        message = response.json()["result"]["messages"][0]
        assert message["role"] == "assistant"
        assert json.loads(message["content"]["text"]) == chat_prompt_body


# =============================================================================
# CLI Tests
# =============================================================================

class TestCli:
    """Tests for the command-line interface."""

    @pytest.fixture
    def runner(self, manager, monkeypatch):
        monkeypatch.setattr("promptmcp.cli.get_manager", lambda connection: manager)
        return CliRunner()

    def test_get_json(self, runner, langfuse, text_prompt_body):
        """Test get --json prints the prompt."""
        langfuse.reply(200, json=text_prompt_body)

        result = runner.invoke(cli_app, ["get", "movie-critic", "--label", "production", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == text_prompt_body
        assert langfuse.last.url.params["label"] == "production"

    def test_list(self, runner, langfuse, prompt_list_body):
        """Test list renders a table."""
        langfuse.reply(200, json=prompt_list_body)

        result = runner.invoke(cli_app, ["list"])

        assert result.exit_code == 0
        assert "movie-critic" in result.output

    def test_update_labels(self, runner, langfuse, text_prompt_body):
        """Test update-labels sends the given labels."""
        langfuse.reply(200, json=text_prompt_body)

        result = runner.invoke(cli_app, ["update-labels", "movie-critic", "3", "production", "latest"])

        assert result.exit_code == 0
        assert langfuse.last_json() == {"newLabels": ["production", "latest"]}

    def test_update_labels_not_found(self, runner, langfuse):
        """Test service errors exit with status 1."""
        langfuse.reply(404, text="Not Found")

        result = runner.invoke(cli_app, ["update-labels", "x", "99", "production"])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_create_from_file(self, runner, langfuse, text_prompt_body, tmp_path):
        """Test create reads the prompt from a JSON file."""
        langfuse.reply(201, json=text_prompt_body)
        path = tmp_path / "prompt.json"
        path.write_text(json.dumps({"type": "text", "name": "movie-critic", "prompt": "hi"}))

        result = runner.invoke(cli_app, ["create", "--file", str(path)])

        assert result.exit_code == 0
        assert langfuse.last.method == "POST"

    def test_create_invalid(self, runner, langfuse, tmp_path):
        """Test an invalid prompt file is rejected locally."""
        path = tmp_path / "prompt.json"
        path.write_text(json.dumps({"type": "chat", "name": "x", "prompt": []}))

        result = runner.invoke(cli_app, ["create", "--file", str(path)])

        assert result.exit_code == 1
        assert langfuse.calls == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
