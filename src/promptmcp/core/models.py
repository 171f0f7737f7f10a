"""
Prompt management schemas.

Mirror the parts of the Langfuse public API that deal with prompt management
(``/api/public/v2/prompts``). They validate outgoing requests as well as
incoming responses. Attributes are snake_case in Python and camelCase on the
wire; both spellings are accepted on input.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, NoReturn, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    PrivateAttr,
    TypeAdapter,
    ValidationError,
)
from pydantic.alias_generators import to_camel

from promptmcp.core.errors import PromptValidationError


class WireModel(BaseModel):
    """Base for models exchanged with the Langfuse API."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResourceModel(WireModel):
    """Response models keep fields the schema does not know about."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    # Decoded body this model was validated from, if any.
    _source: Any = PrivateAttr(default=None)


# =============================================================================
# Building blocks
# =============================================================================


class ChatMessage(ResourceModel):
    """A single turn of a chat prompt."""
    role: str
    content: str


class UtilsMetaResponse(WireModel):
    """Pagination block returned by list endpoints."""
    page: int
    limit: int
    total_items: int
    total_pages: int


# =============================================================================
# Create-prompt request
# =============================================================================


class _CreatePromptFields(WireModel):
    name: str
    config: Any = None
    labels: list[str] | None = None
    tags: list[str] | None = None
    commit_message: str | None = None


class CreateChatPromptRequest(_CreatePromptFields):
    """Request body for creating a chat prompt version."""
    type: Literal["chat"]
    prompt: list[ChatMessage] = Field(min_length=1)


class CreateTextPromptRequest(_CreatePromptFields):
    """Request body for creating a text prompt version."""
    type: Literal["text"]
    prompt: str


CreatePromptRequest = Annotated[
    Union[CreateChatPromptRequest, CreateTextPromptRequest],
    Field(discriminator="type"),
]


# =============================================================================
# Prompt resource (response)
# =============================================================================


class _PromptFields(ResourceModel):
    name: str
    version: int
    config: Any = None
    labels: list[str]
    tags: list[str]
    commit_message: str | None = None
    # Set for prompts composed from other prompts.
    resolution_graph: dict[str, Any] | None = None


class TextPrompt(_PromptFields):
    """A text prompt version as returned by the service."""
    type: Literal["text"]
    prompt: str = ""


class ChatPrompt(_PromptFields):
    """A chat prompt version as returned by the service."""
    type: Literal["chat"]
    prompt: list[ChatMessage] = Field(default_factory=list)


Prompt = Annotated[Union[ChatPrompt, TextPrompt], Field(discriminator="type")]


# =============================================================================
# Prompt meta list (GET /prompts)
# =============================================================================


class PromptMeta(ResourceModel):
    """Summary of every version stored under one prompt name."""
    name: str
    versions: list[int]
    labels: list[str]
    tags: list[str]
    last_updated_at: str
    last_config: Any = None


class PromptMetaListResponse(ResourceModel):
    """Response of the list endpoint."""
    data: list[PromptMeta]
    meta: UtilsMetaResponse


# =============================================================================
# Update-prompt-version request (PATCH /prompts/{name}/versions/{version})
# =============================================================================


class UpdatePromptVersionRequest(WireModel):
    """Replaces the labels of one prompt version."""
    new_labels: list[str]


# =============================================================================
# Query parameters
# =============================================================================


class ListPromptsQuery(WireModel):
    """Filters accepted by the list endpoint."""
    name: str | None = None
    label: str | None = None
    tag: str | None = None
    page: PositiveInt | None = None
    limit: PositiveInt | None = None
    from_updated_at: str | None = Field(None, description="ISO-8601 date-time")
    to_updated_at: str | None = Field(None, description="ISO-8601 date-time")


class GetPromptQuery(WireModel):
    """Selects which version of a prompt the get endpoint returns."""
    version: PositiveInt | None = None
    label: str | None = None


# =============================================================================
# Validation helpers
# =============================================================================

_create_adapter: TypeAdapter[CreateChatPromptRequest | CreateTextPromptRequest] = (
    TypeAdapter(CreatePromptRequest)
)
_prompt_adapter: TypeAdapter[ChatPrompt | TextPrompt] = TypeAdapter(Prompt)
_version_adapter: TypeAdapter[int] = TypeAdapter(PositiveInt)

_TAGS = ("text", "chat")


def _format_errors(exc: ValidationError, tagged: bool) -> list[tuple[str, str]]:
    """Turn pydantic errors into (field, message) pairs."""
    errors = []
    for err in exc.errors():
        loc = list(err["loc"])
        # Discriminated unions prefix the location with the matched tag.
        if tagged and loc and loc[0] in _TAGS:
            loc = loc[1:]
        if loc:
            field = ".".join(str(part) for part in loc)
        elif err["type"].startswith("union_tag"):
            field = "type"
        else:
            field = "<root>"
        errors.append((field, err["msg"]))
    return errors


def _raise_validation(what: str, exc: ValidationError, tagged: bool = False) -> NoReturn:
    errors = _format_errors(exc, tagged)
    details = "; ".join(f"{field}: {msg}" for field, msg in errors)
    raise PromptValidationError(f"Invalid {what}: {details}", errors) from exc


def parse_create_request(value: Any) -> CreateChatPromptRequest | CreateTextPromptRequest:
    """Validate an untrusted create-prompt payload."""
    try:
        return _create_adapter.validate_python(value)
    except ValidationError as e:
        _raise_validation("create prompt request", e, tagged=True)


def parse_prompt(value: Any) -> ChatPrompt | TextPrompt:
    """Validate a prompt resource returned by the service."""
    try:
        prompt = _prompt_adapter.validate_python(value)
    except ValidationError as e:
        _raise_validation("prompt", e, tagged=True)
    prompt._source = value
    return prompt


def parse_prompt_list(value: Any) -> PromptMetaListResponse:
    """Validate the body of the list endpoint."""
    try:
        result = PromptMetaListResponse.model_validate(value)
    except ValidationError as e:
        _raise_validation("prompt list", e)
    result._source = value
    return result


def parse_list_query(value: Any) -> ListPromptsQuery:
    """Validate list filters such as ``{"label": "production", "limit": 10}``."""
    try:
        return ListPromptsQuery.model_validate(value)
    except ValidationError as e:
        _raise_validation("list query", e)


def parse_get_query(value: Any) -> GetPromptQuery:
    """Validate get selectors such as ``{"version": 3}``."""
    try:
        return GetPromptQuery.model_validate(value)
    except ValidationError as e:
        _raise_validation("get query", e)


def parse_version(value: Any) -> int:
    """Validate a version number; integral floats such as ``3.0`` become ``3``."""
    try:
        return _version_adapter.validate_python(value)
    except ValidationError as e:
        errors = [("version", err["msg"]) for err in e.errors()]
        raise PromptValidationError(f"Invalid version: {errors[0][1]}", errors) from e


def parse_update_request(value: Any) -> UpdatePromptVersionRequest:
    """Validate a relabel payload such as ``{"newLabels": ["production"]}``."""
    try:
        return UpdatePromptVersionRequest.model_validate(value)
    except ValidationError as e:
        _raise_validation("update prompt request", e)


def to_payload(model: BaseModel) -> dict[str, Any]:
    """Serialize a request model for sending; null fields are omitted."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def to_wire(model: BaseModel) -> Any:
    """
    Serialize a response model back to the body the service sent.

    Models validated from a response return that body untouched, keeping its
    key order and values. Others are dumped by alias.
    """
    if isinstance(model, ResourceModel) and model._source is not None:
        return model._source
    return model.model_dump(mode="json", by_alias=True, exclude_unset=True)


def create_request_json_schema() -> dict[str, Any]:
    """JSON schema of the create-prompt union, by wire alias."""
    return _create_adapter.json_schema(by_alias=True)
