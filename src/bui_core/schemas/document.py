"""Compiled document model.

The Document is the root artifact of a compilation and the contract consumed
by code generators. It is immutable once produced.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from bui_core.schemas.profile import Profile
from bui_core.schemas.service import Service

# The only format version accepted in a version block
FORMAT_VERSION = "1.0.0"


class Document(BaseModel):
    """Compiled project.

    Attributes:
        version: Format version, always "1.0.0".
        profile: Publisher profile, absent if index.bui declares none.
        services: Services in declaration order (``bPods`` on the wire).

    Example:
        >>> doc = Document(profile=Profile(name="Acme"), services=[])
        >>> doc.model_dump(by_alias=True)["bPods"]
        []
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    version: Literal["1.0.0"] = Field(
        default=FORMAT_VERSION,
        description="Format version",
    )
    profile: Profile | None = Field(
        default=None,
        description="Publisher profile",
    )
    services: list[Service] = Field(
        default_factory=list,
        alias="bPods",
        description="Services in declaration order",
    )

    def get_service(self, name: str) -> Service | None:
        """Return the service named ``name``, if any."""
        for service in self.services:
            if service.name == name:
                return service
        return None
