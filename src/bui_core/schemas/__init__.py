"""Schema models for bui-core.

- Profile: publisher profile declared in index.bui
- Service: b-pod descriptor (Input, InputValidation, Submit, ApiConfig)
- Document: compiled project
"""

from __future__ import annotations

from bui_core.schemas.common import HttpsUrl, require_https_url
from bui_core.schemas.document import FORMAT_VERSION, Document
from bui_core.schemas.profile import DEFAULT_LOGO, PROFILE_DESCRIPTION_MAX_LENGTH, Profile
from bui_core.schemas.service import (
    MAX_RETRIES,
    OPTION_INPUT_TYPES,
    WEBHOOK_PLACEHOLDER,
    ApiConfig,
    Input,
    InputValidation,
    Service,
    Submit,
)

__all__: list[str] = [
    # Shared types
    "HttpsUrl",
    "require_https_url",
    # Profile
    "Profile",
    "DEFAULT_LOGO",
    "PROFILE_DESCRIPTION_MAX_LENGTH",
    # Service
    "Service",
    "Input",
    "InputValidation",
    "Submit",
    "ApiConfig",
    "MAX_RETRIES",
    "OPTION_INPUT_TYPES",
    "WEBHOOK_PLACEHOLDER",
    # Document
    "Document",
    "FORMAT_VERSION",
]
