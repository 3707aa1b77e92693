import logging
import threading
from typing import Callable

from .models import PacketEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[PacketEvent], None]


class EventBus:
    """Keeps the event history and fans each event out to subscribers."""

    def __init__(self):
        self._history: list[PacketEvent] = []
        self._handlers: list[EventHandler] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: EventHandler) -> None:
        with self._lock:
            self._handlers.append(handler)

    def emit(self, event: PacketEvent) -> None:
        with self._lock:
            self._history.append(event)
            handlers = list(self._handlers)
        logger.info(
            "[%s] packet=%s account=%s amount=%s block=%s",
            event.event_type.value, event.packet_id, event.account, event.amount, event.block,
        )
        for handler in handlers:
            # The operation is already committed; a failing observer cannot undo it.
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler %r failed on %s", handler, event.event_type.value)

    def history(self) -> list[PacketEvent]:
        with self._lock:
            return list(self._history)
