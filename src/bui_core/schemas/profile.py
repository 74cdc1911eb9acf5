"""Publisher profile model.

The profile is declared once, in index.bui, and describes who publishes the
services of the project.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from bui_core.schemas.common import HttpsUrl

# Logo used when a profile does not declare one
DEFAULT_LOGO = "https://cdn.breeth.com/default-logo.png"

PROFILE_DESCRIPTION_MAX_LENGTH = 500


class Profile(BaseModel):
    """Publisher profile.

    Attributes:
        name: Display name (required, non-empty).
        logo: HTTPS logo URL. Defaults to DEFAULT_LOGO.
        description: Optional description, at most 500 characters.
        website: Optional HTTPS website URL.
        contact: Optional contact (email address or URL).

    Example:
        >>> profile = Profile(name="SoundAI Labs", website="https://soundai.example")
        >>> profile.logo == DEFAULT_LOGO
        True
    """

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    name: str = Field(
        ...,
        min_length=1,
        description="Publisher display name",
    )
    logo: HttpsUrl = Field(
        default=DEFAULT_LOGO,
        description="HTTPS logo URL",
    )
    description: str | None = Field(
        default=None,
        max_length=PROFILE_DESCRIPTION_MAX_LENGTH,
        description="Short publisher description",
    )
    website: HttpsUrl | None = Field(
        default=None,
        description="HTTPS website URL",
    )
    contact: str | None = Field(
        default=None,
        description="Contact email or URL",
    )
