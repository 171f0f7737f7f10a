"""
Shared fixtures.

The Langfuse API is replaced with ``httpx.MockTransport`` driven by a small
recorder that replays queued responses.
"""

import json

import httpx
import pytest

from promptmcp.config import RetryPolicy
from promptmcp.core.manager import PromptManager

HOST = "https://langfuse.test"
PUBLIC_KEY = "pk-lf-test"
SECRET_KEY = "sk-lf-test"


class FakeLangfuse:
    """Records every request and answers with queued responses.

    The last queued response is repeated once the queue runs dry.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._queue: list = []

    def reply(self, status_code: int = 200, json=None, text: str | None = None):
        if json is not None:
            self._queue.append(httpx.Response(status_code, json=json))
        else:
            self._queue.append(httpx.Response(status_code, text=text or ""))
        return self

    def fail(self, message: str = "connection refused"):
        self._queue.append(message)
        return self

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.content)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._queue:
            return httpx.Response(500, text="nothing queued")

        item = self._queue.pop(0) if len(self._queue) > 1 else self._queue[0]
        if isinstance(item, str):
            raise httpx.ConnectError(item, request=request)
        return item


@pytest.fixture
def langfuse():
    """A fake Langfuse service."""
    return FakeLangfuse()


@pytest.fixture
def manager(langfuse):
    """A manager wired to the fake service, retrying without delay."""
    return PromptManager(
        host=HOST,
        public_key=PUBLIC_KEY,
        secret_key=SECRET_KEY,
        retry=RetryPolicy(attempts=3, backoff=0),
        transport=httpx.MockTransport(langfuse),
    )


@pytest.fixture
def text_prompt_body():
    return {
        "type": "text",
        "name": "movie-critic",
        "version": 3,
        "prompt": "As a {{criticLevel}} movie critic, do you like {{movie}}?",
        "config": {"model": "gpt-4o", "temperature": 0.7},
        "labels": ["production", "latest"],
        "tags": ["movies"],
        "commitMessage": "Tone down the snark",
    }


@pytest.fixture
def chat_prompt_body():
    return {
        "type": "chat",
        "name": "support-agent",
        "version": 1,
        "prompt": [
            {"role": "system", "content": "You are a helpful support agent."},
            {"role": "user", "content": "{{question}}"},
        ],
        "config": None,
        "labels": [],
        "tags": [],
    }


@pytest.fixture
def prompt_list_body():
    return {
        "data": [
            {
                "name": "movie-critic",
                "versions": [1, 2, 3],
                "labels": ["production", "latest"],
                "tags": ["movies"],
                "lastUpdatedAt": "2024-05-01T10:00:00.000Z",
                "lastConfig": {"model": "gpt-4o"},
            }
        ],
        "meta": {"page": 1, "limit": 50, "totalItems": 1, "totalPages": 1},
    }
