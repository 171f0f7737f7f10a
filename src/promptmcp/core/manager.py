"""
PromptManager - async client for the Langfuse prompt management API.

Every operation is a single logical HTTP call: build the URL, send the
request, check the status and validate the body against the prompt schemas.
Transient failures are retried with bounded exponential backoff.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Mapping

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from promptmcp.config import DEFAULT_HOST, ClientSettings, ConnectionSettings, RetryPolicy
from promptmcp.core.endpoints import (
    create_prompt_url,
    get_prompt_url,
    list_prompts_url,
    update_prompt_url,
)
from promptmcp.core.errors import PromptRequestError, PromptValidationError
from promptmcp.core.models import (
    ChatPrompt,
    CreateChatPromptRequest,
    CreateTextPromptRequest,
    ListPromptsQuery,
    PromptMetaListResponse,
    TextPrompt,
    parse_create_request,
    parse_get_query,
    parse_list_query,
    parse_prompt,
    parse_prompt_list,
    parse_update_request,
    parse_version,
    to_payload,
)

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = frozenset({502, 503, 504})

# Failures where the request never reached the service.
NOT_SENT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


class TransientResponseError(PromptRequestError):
    """A gateway error that is worth retrying."""
    pass


class PromptManager:
    """
    Client for one Langfuse project.

    Holds the API host and the credentials of a single caller. Instances are
    cheap and meant to be created per incoming request.

    Example:
        manager = PromptManager(
            host="https://cloud.langfuse.com",
            public_key="pk-lf-...",
            secret_key="sk-lf-...",
        )

        prompt = await manager.get_prompt("movie-critic", label="production")
        await manager.update_prompt("movie-critic", prompt.version, ["production", "latest"])
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        public_key: str = "",
        secret_key: str = "",
        *,
        timeout: float = 30.0,
        retry: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the manager.

        Args:
            host: Base URL of the Langfuse instance
            public_key: Project public key
            secret_key: Project secret key
            timeout: Timeout in seconds for each HTTP attempt
            retry: Retry policy for transient failures
            transport: Custom httpx transport (e.g. ``httpx.MockTransport``)
        """
        self.host = host or DEFAULT_HOST
        token = base64.b64encode(f"{public_key}:{secret_key}".encode()).decode()
        self.headers = {
            "Authorization": f"Basic {token}",
            "Content-Type": "application/json",
        }
        self.timeout = httpx.Timeout(timeout)
        self.retry = retry or RetryPolicy()
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        connection: ConnectionSettings,
        client: ClientSettings | None = None,
        **kwargs: Any,
    ) -> PromptManager:
        """Create a manager from resolved connection and client settings."""
        client = client or ClientSettings()
        return cls(
            host=connection.host,
            public_key=connection.public_key,
            secret_key=connection.secret_key,
            timeout=client.timeout,
            retry=client.retry,
            **kwargs,
        )

    # =========================================================================
    # Operations
    # =========================================================================

    async def list_prompts(
        self,
        query: ListPromptsQuery | Mapping[str, Any] | None = None,
    ) -> PromptMetaListResponse:
        """
        List prompt names with their versions, labels and tags.

        Args:
            query: Optional filters (name, label, tag, page, limit, date range)
        """
        if query is not None and not isinstance(query, ListPromptsQuery):
            query = parse_list_query(query)

        data = await self._request("GET", list_prompts_url(self.host, query), "list prompts")
        return parse_prompt_list(data)

    async def create_prompt(
        self,
        request: CreateChatPromptRequest | CreateTextPromptRequest | Mapping[str, Any],
    ) -> ChatPrompt | TextPrompt:
        """
        Create a prompt, or a new version of an existing one.

        Plain mappings are validated before anything is sent.
        """
        if not isinstance(request, (CreateChatPromptRequest, CreateTextPromptRequest)):
            request = parse_create_request(request)

        data = await self._request(
            "POST",
            create_prompt_url(self.host),
            "create prompt",
            json=to_payload(request),
            idempotent=False,
        )
        return parse_prompt(data)

    async def get_prompt(
        self,
        name: str,
        version: int | None = None,
        label: str | None = None,
    ) -> ChatPrompt | TextPrompt:
        """
        Fetch one version of a prompt.

        Without ``version`` and ``label`` the service returns the version
        labelled "production".
        """
        query = parse_get_query({"version": version, "label": label})

        data = await self._request(
            "GET",
            get_prompt_url(self.host, name, query.version, query.label),
            "get prompt",
        )
        return parse_prompt(data)

    async def update_prompt(
        self,
        name: str,
        version: int,
        new_labels: list[str],
    ) -> ChatPrompt | TextPrompt:
        """
        Replace the labels of one prompt version.

        Assigning a label that another version holds moves it to this one.

        Raises:
            PromptValidationError: If ``version`` is not a positive integer or
                ``new_labels`` is not a list of strings (both checked before
                any request) or the response is malformed
            PromptRequestError: If the service rejects the update
        """
        version = parse_version(version)
        body = parse_update_request({"newLabels": new_labels})

        data = await self._request(
            "PATCH",
            update_prompt_url(self.host, name, version),
            "update prompt",
            json=to_payload(body),
        )
        prompt = parse_prompt(data)
        logger.info(f"Set labels of {name} v{version} to {body.new_labels}")
        return prompt

    # =========================================================================
    # Transport
    # =========================================================================

    async def _request(
        self,
        method: str,
        url: str,
        action: str,
        json: Any = None,
        idempotent: bool = True,
    ) -> Any:
        """
        Send one request with retries and return the decoded JSON body.

        Non-idempotent requests are only resent when the connection could not
        be opened, so the service never sees them twice.
        """
        retryable = (
            (httpx.TransportError, TransientResponseError) if idempotent else NOT_SENT_ERRORS
        )
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry.attempts),
            wait=wait_exponential(multiplier=self.retry.backoff, max=self.retry.max_backoff),
            retry=retry_if_exception_type(retryable),
            before_sleep=self._log_retry,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._send(method, url, json)
                    self._raise_for_status(response, action)
        except httpx.TransportError as e:
            logger.error(f"Failed to {action}: {e!r}")
            raise PromptRequestError(f"Failed to {action}: {e!r}") from e
        except PromptRequestError as e:
            logger.error(str(e))
            raise

        return self._decode(response, action)

    async def _send(self, method: str, url: str, json: Any) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            logger.debug(f"{method} {url}")
            return await client.request(method, url, headers=self.headers, json=json)

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        """Raise PromptRequestError with status, reason and body on non-2xx."""
        if response.is_success:
            return

        body = response.text
        message = (
            f"Failed to {action} "
            f"(HTTP {response.status_code} {response.reason_phrase}): {body}"
        )
        error_cls = (
            TransientResponseError
            if response.status_code in RETRYABLE_STATUS
            else PromptRequestError
        )
        raise error_cls(message, status_code=response.status_code, body=body)

    @staticmethod
    def _decode(response: httpx.Response, action: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise PromptValidationError(
                f"Invalid response to {action}: body is not JSON",
                [("<root>", str(e))],
            ) from e

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"Attempt {retry_state.attempt_number} failed ({error}), retrying"
        )
