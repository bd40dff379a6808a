"""In-memory registry of live bot connections."""

import asyncio
import weakref
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, MutableMapping, Optional

from domain.entities import utcnow
from infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass
class LiveHandle:
    """An authenticated client plus the task keeping its session open."""

    instance_id: str
    client: Any
    session: Optional["asyncio.Task[Any]"] = None
    started_at: datetime = field(default_factory=utcnow)

    async def close(self, timeout: float) -> None:
        """Close the connection and wait for the session task to finish."""
        await self.client.close()

        session = self.session
        if session is None or session.done():
            return
        try:
            await asyncio.wait_for(session, timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Session for {self.instance_id} did not finish within {timeout}s; cancelled")
        except asyncio.CancelledError:
            if not session.cancelled():
                raise
        except Exception as e:
            logger.debug(f"Session for {self.instance_id} ended with {e!r}")


class LifecycleRegistry:
    """
    Single source of truth for which instances are running.

    Holds at most one live handle per instance id. An explicit component:
    the owner of the service lifecycle constructs it at startup and tears it
    down with :meth:`stop_all`.
    """

    def __init__(self) -> None:
        self._handles: Dict[str, LiveHandle] = {}
        # A lock lives only while a transition holds or awaits it
        self._locks: MutableMapping[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def status(self, instance_id: str) -> bool:
        return instance_id in self._handles

    def get(self, instance_id: str) -> Optional[LiveHandle]:
        return self._handles.get(instance_id)

    def set(self, instance_id: str, handle: LiveHandle) -> Optional[LiveHandle]:
        """Register a handle; returns any handle it displaced, for the caller to close."""
        previous = self._handles.get(instance_id)
        if previous is not None and previous is not handle:
            logger.warning(f"Replacing live handle for {instance_id}")
        self._handles[instance_id] = handle
        return previous if previous is not handle else None

    def remove(self, instance_id: str) -> Optional[LiveHandle]:
        return self._handles.pop(instance_id, None)

    def ids(self) -> List[str]:
        return list(self._handles)

    def __len__(self) -> int:
        return len(self._handles)

    def lock_for(self, instance_id: str) -> asyncio.Lock:
        """Lock serializing start/stop transitions of one instance."""
        lock = self._locks.get(instance_id)
        if lock is None:
            lock = self._locks[instance_id] = asyncio.Lock()
        return lock

    async def stop_all(
        self,
        stopper: Callable[[str], Awaitable[Any]],
        timeout: Optional[float] = None,
    ) -> None:
        """
        Stop every registered instance concurrently.

        Returns only after every stop has finished. A stop that overruns
        ``timeout`` is abandoned and its handle dropped from the registry.
        """
        instance_ids = self.ids()
        if not instance_ids:
            return
        logger.info(f"Stopping {len(instance_ids)} running instance(s)")
        await asyncio.gather(*(self._bounded_stop(stopper, i, timeout) for i in instance_ids))

    async def _bounded_stop(
        self, stopper: Callable[[str], Awaitable[Any]], instance_id: str, timeout: Optional[float]
    ) -> None:
        try:
            await asyncio.wait_for(stopper(instance_id), timeout)
        except asyncio.TimeoutError:
            logger.error(f"Stopping {instance_id} timed out after {timeout}s; dropping its handle")
            self.remove(instance_id)
        except Exception as e:
            logger.error(f"Stopping {instance_id} failed: {e}", exc_info=True)
            self.remove(instance_id)
