"""Schema validation for profiles and services.

Validation is total: every violated constraint is reported, not just the
first one, and advisory conditions (missing logo, tags, timeout ...) are
always re-checked and returned as warnings, even when validation fails.

Three layers feed the issue list:

1. Structural checks from the pydantic models in ``bui_core.schemas``; each
   pydantic error is mapped to a stable code from its field path and error
   type (missing, wrong type, malformed string, out of range).
2. Cross-field rules evaluated on the raw data, independently of whether the
   structural checks passed, so simultaneous issues surface in one pass.
3. Advisory checks producing warnings.

``validate_file_extensions`` and ``validate_body_template`` are standalone
checks the parser runs on services that already passed schema validation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import ErrorDetails

from bui_core.diagnostics import ErrorCode, Severity, WarningCode
from bui_core.schemas import (
    DEFAULT_LOGO,
    OPTION_INPUT_TYPES,
    WEBHOOK_PLACEHOLDER,
    Profile,
    Service,
)

T = TypeVar("T")

# Accepted file extensions: lowercase letters and digits, no dot
EXTENSION_PATTERN = re.compile(r"^[a-z0-9]+$")

_VALUE_ERROR_PREFIX = "Value error, "


class ValidationIssue(BaseModel):
    """A single validation finding.

    Attributes:
        message: Human-readable description.
        path: Field path in wire format, e.g. ``["api", "bodyTemplate"]``.
        code: Stable diagnostic code.
        severity: error or warning.
        received: Offending value, when meaningful.
        expected: Description of what was expected.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    message: str
    path: list[str] = Field(default_factory=list)
    code: str
    severity: Severity = Severity.ERROR
    received: Any = None
    expected: Any = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Outcome of validating one entity.

    Attributes:
        success: True when no error-severity issue was found.
        data: The validated model, only set on success.
        issues: All findings, errors and warnings.
    """

    success: bool
    data: T | None = None
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.is_error]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if not issue.is_error]


def _error(
    code: ErrorCode,
    message: str,
    path: list[str],
    received: Any = None,
    expected: Any = None,
) -> ValidationIssue:
    return ValidationIssue(
        message=message,
        path=path,
        code=code.value,
        severity=Severity.ERROR,
        received=received,
        expected=expected,
    )


def _warning(code: WarningCode, message: str, path: list[str], expected: str) -> ValidationIssue:
    return ValidationIssue(
        message=message,
        path=path,
        code=code.value,
        severity=Severity.WARNING,
        expected=expected,
    )


def validate_profile(data: Any) -> ValidationResult[Profile]:
    """Validate a decoded profile body.

    Args:
        data: Value decoded from the profile block's JSON.

    Returns:
        ValidationResult with the Profile on success and every issue found.

    Example:
        >>> result = validate_profile({"name": "Acme"})
        >>> result.success
        True
        >>> [w.code for w in result.warnings]
        ['W101', 'W102', 'W103']
    """
    if not isinstance(data, dict):
        issue = _error(
            ErrorCode.INVALID_FIELD_TYPE,
            "Profile must be a JSON object",
            [],
            received=type(data).__name__,
            expected="object",
        )
        return ValidationResult(success=False, issues=[issue])

    issues: list[ValidationIssue] = []
    profile: Profile | None = None
    try:
        profile = Profile.model_validate(data)
    except PydanticValidationError as e:
        issues.extend(_issues_from_pydantic(e, "profile"))

    issues.extend(_profile_advisories(data))
    success = profile is not None and not any(issue.is_error for issue in issues)
    return ValidationResult(success=success, data=profile if success else None, issues=issues)


def validate_service(data: Any) -> ValidationResult[Service]:
    """Validate a decoded service (b-pod) body merged with its name.

    Args:
        data: Service mapping, including ``name``.

    Returns:
        ValidationResult with the Service on success and every issue found.
    """
    if not isinstance(data, dict):
        issue = _error(
            ErrorCode.INVALID_FIELD_TYPE,
            "B-pod body must be a JSON object",
            [],
            received=type(data).__name__,
            expected="object",
        )
        return ValidationResult(success=False, issues=[issue])

    issues: list[ValidationIssue] = []
    service: Service | None = None
    try:
        service = Service.model_validate(data)
    except PydanticValidationError as e:
        issues.extend(_issues_from_pydantic(e, "service"))

    issues.extend(_service_cross_field_issues(data))
    issues.extend(_service_advisories(data))
    success = service is not None and not any(issue.is_error for issue in issues)
    return ValidationResult(success=success, data=service if success else None, issues=issues)


def validate_file_extensions(extensions: list[str]) -> ValidationResult[list[str]]:
    """Check accepted extensions are lowercase alphanumeric and unique."""
    issues: list[ValidationIssue] = []

    invalid = [ext for ext in extensions if not EXTENSION_PATTERN.fullmatch(ext)]
    if invalid:
        issues.append(
            _error(
                ErrorCode.BPOD_ACCEPTS_INVALID_FORMAT,
                f"Invalid file extensions: {', '.join(invalid)}",
                ["accepts"],
                received=invalid,
                expected="Lowercase alphanumeric extensions without dots",
            )
        )

    seen: set[str] = set()
    duplicates: list[str] = []
    for ext in extensions:
        if ext in seen and ext not in duplicates:
            duplicates.append(ext)
        seen.add(ext)
    if duplicates:
        issues.append(
            _error(
                ErrorCode.BPOD_ACCEPTS_INVALID_FORMAT,
                f"Duplicate file extensions: {', '.join(duplicates)}",
                ["accepts"],
                received=duplicates,
                expected="Each extension listed once",
            )
        )

    if issues:
        return ValidationResult(success=False, issues=issues)
    return ValidationResult(success=True, data=extensions)


def validate_body_template(
    template: dict[str, str],
    file_params: list[str],
    method: str = "POST",
) -> ValidationResult[dict[str, str]]:
    """Check the body template references ``{webhook_url}`` and every file param.

    A GET service without a body template has nothing to check.
    """
    if method == "GET" and not template:
        return ValidationResult(success=True, data=template)

    required = [WEBHOOK_PLACEHOLDER, *(f"{{{param}}}" for param in file_params)]
    missing = [placeholder for placeholder in required if not _references(template, placeholder)]
    if missing:
        issue = _error(
            ErrorCode.BPOD_API_BODY_TEMPLATE_INCOMPLETE,
            f"Missing required parameters in body template: {', '.join(missing)}",
            ["api", "bodyTemplate"],
            received=sorted(template),
            expected=", ".join(required),
        )
        return ValidationResult(success=False, issues=[issue])
    return ValidationResult(success=True, data=template)


def _references(template: Any, placeholder: str) -> bool:
    if not isinstance(template, dict):
        return False
    return any(isinstance(value, str) and placeholder in value for value in template.values())


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _service_cross_field_issues(data: dict[str, Any]) -> list[ValidationIssue]:
    """Rules spanning several fields, evaluated on raw data."""
    issues: list[ValidationIssue] = []

    accepts = data.get("accepts")
    if isinstance(accepts, list) and all(isinstance(ext, str) for ext in accepts):
        issues.extend(validate_file_extensions(accepts).issues)

    inputs = data.get("inputs")
    if isinstance(inputs, list):
        seen_names: set[str] = set()
        for index, item in enumerate(inputs):
            if not isinstance(item, dict):
                continue
            path = ["inputs", str(index)]
            input_type = item.get("type")
            options = item.get("options")
            if input_type in OPTION_INPUT_TYPES and not (isinstance(options, list) and options):
                issues.append(
                    _error(
                        ErrorCode.INPUT_OPTIONS_REQUIRED,
                        f"Input '{item.get('name', index)}' of type '{input_type}' "
                        "requires a non-empty options list",
                        [*path, "options"],
                        received=options,
                        expected="Non-empty list of option strings",
                    )
                )

            validation = item.get("validation")
            if isinstance(validation, dict):
                low, high = validation.get("min"), validation.get("max")
                if _is_number(low) and _is_number(high) and low > high:
                    issues.append(
                        _error(
                            ErrorCode.INPUT_VALIDATION_RANGE_INVALID,
                            f"Min value {low} cannot be greater than max value {high}",
                            [*path, "validation"],
                            received={"min": low, "max": high},
                            expected="min <= max",
                        )
                    )

            name = item.get("name")
            if isinstance(name, str) and name:
                if name in seen_names:
                    issues.append(
                        _error(
                            ErrorCode.DUPLICATE_INPUT_NAME,
                            f"Duplicate input name: {name}",
                            [*path, "name"],
                            received=name,
                        )
                    )
                seen_names.add(name)

    api = data.get("api")
    if isinstance(api, dict):
        method = api.get("method")
        template = api.get("bodyTemplate", {})
        if isinstance(template, dict):
            if method == "GET" and template:
                issues.append(
                    _error(
                        ErrorCode.BPOD_API_GET_WITH_BODY,
                        "GET requests cannot have a body template",
                        ["api", "bodyTemplate"],
                        received=sorted(template),
                        expected="No bodyTemplate for GET",
                    )
                )
            if (method != "GET" or template) and not _references(template, WEBHOOK_PLACEHOLDER):
                issues.append(
                    _error(
                        ErrorCode.BPOD_API_BODY_TEMPLATE_MISSING_WEBHOOK,
                        "Body template must include {webhook_url} parameter",
                        ["api", "bodyTemplate"],
                        received=sorted(template),
                        expected=WEBHOOK_PLACEHOLDER,
                    )
                )

    return issues


def _profile_advisories(data: dict[str, Any]) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if not data.get("logo") or data.get("logo") == DEFAULT_LOGO:
        issues.append(
            _warning(
                WarningCode.PROFILE_MISSING_LOGO,
                "Profile is missing a custom logo",
                ["logo"],
                "Custom logo URL",
            )
        )
    if not data.get("website"):
        issues.append(
            _warning(
                WarningCode.PROFILE_MISSING_WEBSITE,
                "Profile is missing a website URL",
                ["website"],
                "Website URL",
            )
        )
    if not data.get("description"):
        issues.append(
            _warning(
                WarningCode.PROFILE_MISSING_DESCRIPTION,
                "Profile is missing a description",
                ["description"],
                "Description string",
            )
        )
    return issues


def _service_advisories(data: dict[str, Any]) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if not data.get("description"):
        issues.append(
            _warning(
                WarningCode.BPOD_MISSING_DESCRIPTION,
                "BPod is missing a description",
                ["description"],
                "Description string",
            )
        )
    if not data.get("tags"):
        issues.append(
            _warning(
                WarningCode.BPOD_MISSING_TAGS,
                "BPod is missing tags",
                ["tags"],
                "Array of tag strings",
            )
        )

    api = data.get("api")
    api = api if isinstance(api, dict) else {}
    if not api.get("headers"):
        issues.append(
            _warning(
                WarningCode.API_MISSING_HEADERS,
                "API is missing custom headers",
                ["api", "headers"],
                "Custom headers object",
            )
        )
    if api.get("timeout") is None:
        issues.append(
            _warning(
                WarningCode.API_MISSING_TIMEOUT,
                "API is missing timeout configuration",
                ["api", "timeout"],
                "Timeout in milliseconds",
            )
        )
    return issues


def _issues_from_pydantic(error: PydanticValidationError, entity: str) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for detail in error.errors():
        loc = tuple(detail["loc"])
        path = [str(part) for part in loc]
        error_type = detail["type"]
        code = _code_for(entity, loc, error_type)
        message = detail["msg"].removeprefix(_VALUE_ERROR_PREFIX)
        dotted = ".".join(path) or entity
        issues.append(
            _error(
                code,
                f"{dotted}: {message}",
                path,
                received=None if error_type == "missing" else _safe_input(detail),
            )
        )
    return issues


def _safe_input(detail: ErrorDetails) -> Any:
    value = detail.get("input")
    if isinstance(value, str | int | float | bool) or value is None:
        return value
    return type(value).__name__


def _code_for(entity: str, loc: tuple[int | str, ...], error_type: str) -> ErrorCode:
    """Map a pydantic error location and type to a stable code."""
    if error_type == "extra_forbidden":
        return ErrorCode.UNKNOWN_FIELD

    head = loc[0] if loc else ""
    if entity == "profile":
        specific = _profile_code(head, error_type)
    else:
        specific = _service_code(loc, error_type)
    if specific is not None:
        return specific

    if error_type == "missing":
        return ErrorCode.MISSING_REQUIRED_FIELD
    if error_type.endswith("_type"):
        return ErrorCode.INVALID_FIELD_TYPE
    return ErrorCode.INVALID_FIELD_VALUE


def _profile_code(head: int | str, error_type: str) -> ErrorCode | None:
    if head == "name":
        return ErrorCode.PROFILE_NAME_REQUIRED
    if head == "logo":
        return ErrorCode.INVALID_LOGO_URL
    if head == "website":
        return ErrorCode.INVALID_WEBSITE_URL
    if head == "description" and error_type == "string_too_long":
        return ErrorCode.PROFILE_DESCRIPTION_TOO_LONG
    return None


def _service_code(loc: tuple[int | str, ...], error_type: str) -> ErrorCode | None:
    head = loc[0] if loc else ""

    if loc == ("name",):
        return ErrorCode.BPOD_NAME_REQUIRED
    if head == "submit":
        return ErrorCode.BPOD_SUBMIT_INVALID
    if error_type == "missing":
        return None

    if head == "accepts":
        if error_type == "too_short":
            return ErrorCode.BPOD_ACCEPTS_EMPTY
        return ErrorCode.BPOD_ACCEPTS_INVALID_FORMAT

    if head == "inputs" and len(loc) >= 3:
        if loc[2] == "type" and error_type == "literal_error":
            return ErrorCode.INPUT_TYPE_INVALID
        if loc[-1] == "pattern" and error_type == "value_error":
            return ErrorCode.INPUT_VALIDATION_PATTERN_INVALID
        return None

    if head == "api" and len(loc) >= 2:
        field_name = loc[1]
        if field_name == "url":
            return ErrorCode.BPOD_API_URL_INVALID
        if field_name == "method":
            return ErrorCode.BPOD_API_METHOD_INVALID
        if field_name == "responseType":
            return ErrorCode.BPOD_API_RESPONSE_TYPE_INVALID
        if field_name == "fileParams" and error_type == "too_short":
            return ErrorCode.BPOD_API_FILE_PARAMS_EMPTY
        if field_name == "timeout":
            return ErrorCode.BPOD_API_TIMEOUT_INVALID
        if field_name == "retries":
            return ErrorCode.BPOD_API_RETRIES_OUT_OF_RANGE
    return None
