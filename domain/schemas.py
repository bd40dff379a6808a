"""Pydantic models for instance create/update payloads."""
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InstanceCreate(BaseModel):
    """Payload accepted when a new bot instance is stored."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, description="Display name used to prefix bot output")
    token: str = Field(min_length=1, description="Gateway credential the bot logs in with")
    description: Optional[str] = Field(default=None, description="Free-text description")
    files: Optional[Dict[str, str]] = Field(default=None, description="File name to source text")

    @field_validator("files")
    @classmethod
    def _at_least_one_file(cls, value: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        if value is not None and not value:
            raise ValueError("an instance needs at least one file")
        return value


class InstanceUpdate(BaseModel):
    """Partial update of the user-editable fields of an instance.

    ``is_active`` is absent: only the runtime flips it.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    token: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    files: Optional[Dict[str, str]] = None

    @field_validator("files")
    @classmethod
    def _at_least_one_file(cls, value: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        if value is not None and not value:
            raise ValueError("an instance needs at least one file")
        return value
