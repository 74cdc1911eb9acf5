"""Service (b-pod) models.

A b-pod describes one pluggable unit: the file types it accepts, the form
inputs shown to the user, the submit button and the remote API contract.

Field names follow Python conventions; the wire format (``fileParams``,
``bodyTemplate``, ``responseType``) is kept through aliases so documents
serialise back to the same JSON they were written in.
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bui_core.schemas.common import HttpsUrl

InputType = Literal[
    "text",
    "textarea",
    "number",
    "checkbox",
    "radio",
    "dropdown",
    "toggle",
    "hidden",
]

# Input types that need a non-empty options list
OPTION_INPUT_TYPES = frozenset({"radio", "dropdown"})

HttpMethod = Literal["GET", "POST"]
ResponseType = Literal["file", "json"]

MAX_RETRIES = 5

WEBHOOK_PLACEHOLDER = "{webhook_url}"

_MODEL_CONFIG = ConfigDict(frozen=True, extra="forbid", strict=True, populate_by_name=True)


class InputValidation(BaseModel):
    """Client-side validation rules for an input.

    Attributes:
        min: Minimum numeric value.
        max: Maximum numeric value (must not be below ``min``).
        pattern: Regular expression the value must match.
        message: Message shown when validation fails.
    """

    model_config = _MODEL_CONFIG

    min: float | None = Field(default=None, description="Minimum value")
    max: float | None = Field(default=None, description="Maximum value")
    pattern: str | None = Field(default=None, description="Regular expression")
    message: str | None = Field(default=None, description="Validation failure message")

    @field_validator("pattern")
    @classmethod
    def _pattern_compiles(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"invalid regular expression: {e}") from e
        return value


class Input(BaseModel):
    """A form input rendered for the b-pod.

    Radio and dropdown inputs require ``options``.
    """

    model_config = _MODEL_CONFIG

    name: str = Field(..., min_length=1, description="Input name")
    type: InputType = Field(..., description="Input widget type")
    label: str | None = Field(default=None, description="Display label")
    options: list[str] | None = Field(default=None, description="Choices for radio/dropdown")
    required: bool | None = Field(default=None, description="Whether a value is required")
    placeholder: str | None = Field(default=None, description="Placeholder text")
    validation: InputValidation | None = Field(default=None, description="Validation rules")


class Submit(BaseModel):
    """Submit button configuration."""

    model_config = _MODEL_CONFIG

    label: str = Field(..., min_length=1, description="Button label")
    action: str = Field(..., min_length=1, description="Action identifier")
    disabled: bool | None = Field(default=None, description="Render disabled")
    loading: bool | None = Field(default=None, description="Render in loading state")


class ApiConfig(BaseModel):
    """Remote API contract of a b-pod.

    Attributes:
        url: HTTPS endpoint.
        method: GET or POST.
        file_params: Names of the file parameters (``fileParams``), non-empty.
        body_template: Request body template (``bodyTemplate``); values
            reference ``{webhook_url}`` and every file parameter. Empty for GET.
        response_type: ``file`` or ``json`` (``responseType``).
        headers: Extra request headers.
        timeout: Request timeout in milliseconds.
        retries: Retry count, 0 to 5.
    """

    model_config = _MODEL_CONFIG

    url: HttpsUrl = Field(..., description="HTTPS API endpoint")
    method: HttpMethod = Field(..., description="HTTP method")
    file_params: list[str] = Field(
        ...,
        alias="fileParams",
        min_length=1,
        description="File parameter names",
    )
    body_template: dict[str, str] = Field(
        default_factory=dict,
        alias="bodyTemplate",
        description="Request body template",
    )
    response_type: ResponseType = Field(
        ...,
        alias="responseType",
        description="Expected response type",
    )
    headers: dict[str, str] | None = Field(default=None, description="Extra request headers")
    timeout: float | None = Field(default=None, gt=0, description="Timeout in milliseconds")
    retries: int | None = Field(
        default=None,
        ge=0,
        le=MAX_RETRIES,
        description="Retry count",
    )


class Service(BaseModel):
    """A b-pod service descriptor. Identity is ``name``.

    Example:
        >>> service = Service.model_validate({
        ...     "name": "Convert",
        ...     "accepts": ["pdf"],
        ...     "submit": {"label": "Convert", "action": "convert"},
        ...     "api": {
        ...         "url": "https://api.example.com/convert",
        ...         "method": "POST",
        ...         "fileParams": ["file"],
        ...         "bodyTemplate": {"file": "{file}", "callback": "{webhook_url}"},
        ...         "responseType": "file",
        ...     },
        ... })
    """

    model_config = _MODEL_CONFIG

    name: str = Field(..., min_length=1, description="Unique service name")
    accepts: list[str] = Field(..., min_length=1, description="Accepted file extensions")
    inputs: list[Input] = Field(default_factory=list, description="Form inputs")
    submit: Submit = Field(..., description="Submit button")
    api: ApiConfig = Field(..., description="Remote API contract")
    description: str | None = Field(default=None, description="Service description")
    tags: list[str] | None = Field(default=None, description="Search tags")
    version: str | None = Field(default=None, description="Service version")
