from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from .queues import BoundedQueue, OverflowPolicy

logger = logging.getLogger(__name__)


HandlerFn = Callable[[object], Awaitable[None]]


@dataclass
class HandlerConfig:
    name: str
    queue_max: int = 1000
    overflow_policy: OverflowPolicy = OverflowPolicy.DROP_OLDEST
    concurrency: int = 1
    # Called after an envelope is dropped for this handler
    on_overflow: Optional[Callable[[], None]] = None


@dataclass
class HandlerRuntime:
    config: HandlerConfig
    handler: HandlerFn
    queue: BoundedQueue[object]
    tasks: List[asyncio.Task]


class EventBus:
    """Fan-out event bus with independent per-handler queues.

    With ``concurrency=1`` a handler sees envelopes one at a time, in publish
    order, so per-subscriber state needs no locking.
    """

    def __init__(self, name: str):
        self.name = name
        self._handlers: Dict[str, HandlerRuntime] = {}
        self._lock = asyncio.Lock()

    async def register_handler(self, config: HandlerConfig, handler: HandlerFn) -> None:
        async with self._lock:
            if config.name in self._handlers:
                raise ValueError(f"Handler {config.name} already registered on bus {self.name}")
            queue: BoundedQueue[object] = BoundedQueue(config.queue_max, config.overflow_policy)
            runtime = HandlerRuntime(config=config, handler=handler, queue=queue, tasks=[])
            runtime.tasks = [
                asyncio.create_task(self._worker(runtime), name=f"{config.name}-worker-{i}")
                for i in range(config.concurrency)
            ]
            self._handlers[config.name] = runtime
            logger.info("Registered handler %s on bus %s with concurrency %s", config.name, self.name, config.concurrency)

    async def unregister_handler(self, name: str) -> bool:
        """Stop a handler's workers and drop its pending envelopes."""
        async with self._lock:
            runtime = self._handlers.pop(name, None)
        if runtime is None:
            return False
        await self._stop(runtime)
        dropped = await runtime.queue.clear()
        logger.info("Unregistered handler %s from bus %s dropped=%s", name, self.name, dropped)
        return True

    async def publish(self, envelope: object) -> None:
        async with self._lock:
            runtimes = list(self._handlers.values())
        for runtime in runtimes:
            enqueued = await runtime.queue.put(envelope)
            if not enqueued:
                logger.warning(
                    "Handler queue overflow on %s; policy=%s depth=%s", runtime.config.name, runtime.config.overflow_policy, len(runtime.queue)
                )
                if runtime.config.on_overflow is not None:
                    runtime.config.on_overflow()

    async def wait_idle(self) -> None:
        """Wait until every handler is idle, including envelopes handlers publish meanwhile."""
        while True:
            async with self._lock:
                runtimes = list(self._handlers.values())
            await asyncio.gather(*(runtime.queue.join() for runtime in runtimes))
            if all(runtime.queue.unfinished == 0 for runtime in runtimes):
                return

    def handler_names(self) -> List[str]:
        return list(self._handlers)

    async def _worker(self, runtime: HandlerRuntime) -> None:
        while True:
            try:
                envelope = await runtime.queue.get()
            except asyncio.CancelledError:
                logger.debug("Worker for %s cancelled", runtime.config.name)
                break
            try:
                await runtime.handler(envelope)
            except asyncio.CancelledError:
                logger.debug("Worker for %s cancelled", runtime.config.name)
                await runtime.queue.task_done()
                break
            except Exception:
                logger.exception("Handler %s failed while processing envelope", runtime.config.name)
            await runtime.queue.task_done()

    async def _stop(self, runtime: HandlerRuntime) -> None:
        for task in runtime.tasks:
            task.cancel()
        await asyncio.gather(*runtime.tasks, return_exceptions=True)

    async def shutdown(self) -> None:
        async with self._lock:
            runtimes = list(self._handlers.values())
            self._handlers.clear()
        for runtime in runtimes:
            await self._stop(runtime)
        logger.info("Event bus %s shutdown complete", self.name)


__all__ = ["EventBus", "HandlerConfig", "HandlerFn", "HandlerRuntime"]
