"""
Synchronous in-process event bus.

Handlers run immediately on the publisher's thread, after the publisher's
transaction committed. A failing handler is logged and skipped; it cannot
undo the write that produced the event.
"""

import logging
from typing import Callable, Dict, List

from core.events import ERPEvent

logger = logging.getLogger(__name__)


class EventBus:
    """
    Subscribe by event class name, publish by event instance.

    Handlers are called in subscription order.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str, callback: Callable):
        """
        Register a handler.

        Args:
            event_type: Event class name, e.g. 'InvoicePaid'
            callback: Called with the event instance
        """
        self._subscribers.setdefault(event_type, []).append(callback)

    def publish(self, event: ERPEvent):
        """Deliver event to every subscriber of its class."""
        event_type = event.__class__.__name__

        for callback in self._subscribers.get(event_type, []):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s (event_id=%s)",
                    getattr(callback, "__name__", repr(callback)),
                    event_type,
                    event.event_id,
                )
