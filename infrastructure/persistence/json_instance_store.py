import asyncio
import json
import os
import uuid
from typing import Any, Dict, List, Optional

from domain.entities import BotInstance
from domain.services import InstanceStore
from infrastructure.logging import get_logger

from .records import apply_changes, new_record

logger = get_logger(__name__)


class JsonFileInstanceStore(InstanceStore):
    """Store each instance as a JSON document on the local filesystem.

    File reads and writes run in worker threads so a slow disk does not stall
    the event loop driving the bot sessions.
    """

    def __init__(self, base_path: str = "instances") -> None:
        self.base_path = base_path
        os.makedirs(self.base_path, exist_ok=True)

    def _record_path(self, instance_id: str) -> str:
        # Ids are generated uuids; anything else cannot name a record
        safe_id = os.path.basename(instance_id)
        return os.path.join(self.base_path, f"{safe_id}.json")

    def _read(self, path: str) -> Optional[BotInstance]:
        try:
            with open(path, encoding="utf-8") as fh:
                return BotInstance.from_dict(json.load(fh))
        except FileNotFoundError:
            return None
        except (ValueError, TypeError) as e:
            logger.warning(f"Skipping unreadable instance record {path}: {e}")
            return None

    def _write(self, instance: BotInstance) -> None:
        path = self._record_path(instance.instance_id)
        # Unique per write: updates of one record may run in parallel threads
        tmp_path = f"{path}.{uuid.uuid4().hex}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(instance.to_dict(), fh, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)

    async def get_instance(self, instance_id: str) -> Optional[BotInstance]:
        return await asyncio.to_thread(self._read, self._record_path(instance_id))

    def _read_all(self) -> List[BotInstance]:
        instances = []
        for fname in sorted(os.listdir(self.base_path)):
            if not fname.endswith(".json"):
                continue
            instance = self._read(os.path.join(self.base_path, fname))
            if instance is not None:
                instances.append(instance)
        return instances

    async def list_instances(self) -> List[BotInstance]:
        return await asyncio.to_thread(self._read_all)

    async def create_instance(self, data: Dict[str, Any]) -> BotInstance:
        instance = new_record(data)
        await asyncio.to_thread(self._write, instance)
        return instance

    async def update_instance(
        self, instance_id: str, changes: Dict[str, Any]
    ) -> Optional[BotInstance]:
        stored = await asyncio.to_thread(self._read, self._record_path(instance_id))
        if stored is None:
            return None
        updated = apply_changes(stored, changes)
        await asyncio.to_thread(self._write, updated)
        return updated

    def _remove(self, instance_id: str) -> bool:
        try:
            os.remove(self._record_path(instance_id))
        except FileNotFoundError:
            return False
        return True

    async def delete_instance(self, instance_id: str) -> bool:
        return await asyncio.to_thread(self._remove, instance_id)
