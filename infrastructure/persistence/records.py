"""Helpers shared by the instance store implementations."""

import dataclasses
import uuid
from typing import Any, Dict

from pydantic import ValidationError

from domain.entities import DEFAULT_ENTRY_FILE, BotInstance, utcnow
from domain.exceptions import InvalidInstanceData
from domain.schemas import InstanceCreate

DEFAULT_FILES = {DEFAULT_ENTRY_FILE: "# Main bot file\n"}

_READ_ONLY_FIELDS = {"instance_id", "created_at", "updated_at"}
_MUTABLE_FIELDS = {f.name for f in dataclasses.fields(BotInstance)} - _READ_ONLY_FIELDS


def new_record(data: Dict[str, Any]) -> BotInstance:
    """Build a fresh, inactive record from a create payload."""
    try:
        payload = InstanceCreate(**data)
    except ValidationError as e:
        raise InvalidInstanceData(str(e)) from e

    now = utcnow()
    return BotInstance(
        instance_id=str(uuid.uuid4()),
        name=payload.name,
        token=payload.token,
        description=payload.description,
        files=dict(payload.files or DEFAULT_FILES),
        is_active=False,
        created_at=now,
        updated_at=now,
    )


def apply_changes(instance: BotInstance, changes: Dict[str, Any]) -> BotInstance:
    """Merge partial changes into a record and bump ``updated_at``."""
    unknown = set(changes) - _MUTABLE_FIELDS
    if unknown:
        raise InvalidInstanceData(f"Unknown or read-only fields: {sorted(unknown)}")
    if "files" in changes and not changes["files"]:
        raise InvalidInstanceData("an instance needs at least one file")

    values = dict(changes)
    if "files" in values:
        values["files"] = dict(values["files"])
    return dataclasses.replace(instance, **values, updated_at=utcnow())
