"""
URL builders for the Langfuse prompt endpoints.

Plain string construction: no I/O, no caching.
"""

from __future__ import annotations

from urllib.parse import quote, urlencode

from promptmcp.core.models import ListPromptsQuery

PROMPTS_PATH = "/api/public/v2/prompts"


def _base(base_url: str) -> str:
    return base_url.rstrip("/") + PROMPTS_PATH


def _segment(name: str) -> str:
    """Percent-encode a prompt name as one path segment."""
    return quote(name, safe="")


def create_prompt_url(base_url: str) -> str:
    """URL for creating a prompt (or a new version of one)."""
    return _base(base_url)


def list_prompts_url(base_url: str, query: ListPromptsQuery | None = None) -> str:
    """URL for listing prompts, with any non-null filters as query parameters."""
    url = _base(base_url)
    if query is None:
        return url

    params = query.model_dump(by_alias=True, exclude_none=True)
    if not params:
        return url
    return f"{url}?{urlencode(params)}"


def get_prompt_url(
    base_url: str,
    name: str,
    version: int | None = None,
    label: str | None = None,
) -> str:
    """
    URL for fetching a single prompt.

    ``version`` and ``label`` are appended only when given; both may be
    present, in which case the service decides which one wins.
    """
    url = f"{_base(base_url)}/{_segment(name)}"

    params: list[tuple[str, str]] = []
    if version is not None:
        params.append(("version", str(version)))
    if label is not None:
        params.append(("label", label))

    if params:
        url = f"{url}?{urlencode(params)}"
    return url


def update_prompt_url(base_url: str, name: str, version: int) -> str:
    """URL for relabelling one version of a prompt."""
    return f"{_base(base_url)}/{_segment(name)}/versions/{version}"
