from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PlaceReference(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    place_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("place_id", "placeId"))
    description: Optional[str] = None


class HostIdentity(BaseModel):
    """User profile handed over by the host platform."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: int = Field(validation_alias=AliasChoices("id", "fid"), ge=0)
    username: Optional[str] = None
    display_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("display_name", "displayName"))
    avatar_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("avatar_url", "avatarUrl", "pfpUrl"))
    location: Optional[PlaceReference] = None

    @property
    def label(self) -> str:
        if self.display_name:
            return self.display_name
        if self.username:
            return f"@{self.username}"
        return f"#{self.id}"


class BackendProfile(BaseModel):
    """Supplementary profile served by the application backend."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    primary_address: Optional[str] = Field(default=None, validation_alias=AliasChoices("primary_address", "primaryAddress"))
