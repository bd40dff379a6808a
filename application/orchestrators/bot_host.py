"""Host process lifecycle: start bots, wait for a shutdown signal, stop them all."""

import asyncio
import signal
from typing import Dict, Iterable, List, Optional

from application.controllers import BotController
from infrastructure.logging import get_logger

logger = get_logger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class BotHost:
    """
    Owns the service lifecycle around a :class:`BotController`.

    SIGINT and SIGTERM trigger :meth:`request_shutdown`; :meth:`run` then
    stops every instance and returns only once all of them have stopped, so
    no gateway connection outlives a graceful shutdown.
    """

    def __init__(self, controller: BotController):
        self.controller = controller
        self._shutdown: Optional[asyncio.Event] = None
        self._installed_signals: List[int] = []
        self.results: Dict[str, bool] = {}

    def request_shutdown(self) -> None:
        if self._shutdown is not None and not self._shutdown.is_set():
            logger.info("Shutdown requested; stopping bots")
            self._shutdown.set()

    async def run(self, instance_ids: Optional[Iterable[str]] = None) -> Dict[str, bool]:
        """
        Start bots and serve until shutdown is requested.

        Args:
            instance_ids: Instances to start; when omitted, every instance
                persisted as active is resumed

        Returns:
            Start outcome per instance id
        """
        self._shutdown = asyncio.Event()
        self._install_signal_handlers()
        try:
            to_start = await self._select_instances(instance_ids)
            self.results = await self.controller.start_many(to_start)
            started = sum(1 for ok in self.results.values() if ok)
            logger.info(f"Bot host running: {started}/{len(to_start)} instance(s) started")

            await self._shutdown.wait()
        finally:
            await self.controller.stop_all()
            self._remove_signal_handlers()
            logger.info("Bot host stopped")
        return self.results

    async def _select_instances(self, instance_ids: Optional[Iterable[str]]) -> List[str]:
        if instance_ids is not None:
            return list(instance_ids)
        # Flags left over from a previous process are stale: resume those bots
        # and clear the flags until they are running again
        report = await self.controller.status_report()
        resume = [row.instance_id for row in report if row.persisted_active and not row.running]
        await self.controller.sync_persisted_state()
        return resume

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
                self._installed_signals.append(sig)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                logger.warning(f"Cannot install handler for {sig!r}: {e}")

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in self._installed_signals:
            loop.remove_signal_handler(sig)
        self._installed_signals.clear()
