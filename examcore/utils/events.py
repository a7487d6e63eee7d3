from typing import Dict, List, Callable, Any
import asyncio
from concurrent.futures import ThreadPoolExecutor
import logging
from enum import Enum

logger = logging.getLogger(__name__)


def _event_key(event_type) -> str:
    return event_type.value if isinstance(event_type, Enum) else str(event_type)


class EventBus:
    """In-process publish/subscribe.

    Handlers receive the event envelope ``{"type": <event type>, "payload": {...}}``.
    Coroutine handlers run as tasks, plain callables in a small thread pool. A
    failing handler is logged and never reaches the publisher.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = {}
        self._executor = ThreadPoolExecutor(max_workers=4)

    def subscribe(self, event_type: str, handler: Callable):
        handlers = self._handlers.setdefault(_event_key(event_type), [])
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_type: str, handler: Callable):
        handlers = self._handlers.get(_event_key(event_type), [])
        if handler in handlers:
            handlers.remove(handler)

    def handlers_for(self, event_type: str) -> List[Callable]:
        return list(self._handlers.get(_event_key(event_type), []))

    async def publish(self, event_type: str, payload: Dict[str, Any]):
        handlers = self.handlers_for(event_type)
        if not handlers:
            return

        event = {"type": _event_key(event_type), "payload": payload}
        loop = asyncio.get_running_loop()
        tasks = []
        for handler in handlers:
            if asyncio.iscoroutinefunction(handler):
                tasks.append(asyncio.create_task(handler(event)))
            else:
                tasks.append(loop.run_in_executor(self._executor, self._run_sync_handler, handler, event))

        results = await asyncio.gather(*tasks, return_exceptions=True)
        for handler, result in zip(handlers, results):
            if isinstance(result, Exception):
                logger.error(f"Error in event handler {handler.__name__} for {event['type']}: {result}")

    def _run_sync_handler(self, handler: Callable, event: Dict[str, Any]):
        try:
            handler(event)
        except Exception as e:
            logger.error(f"Error in sync event handler {handler.__name__}: {e}")
            raise

event_bus = EventBus()
