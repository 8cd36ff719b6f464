"""Event dispatcher for timeline update events."""

import inspect
import logging
from collections.abc import Awaitable, Callable

from chatsync.domain.entities.event import Event, EventType

logger = logging.getLogger(__name__)

# Handler type: async function that takes an Event and returns None
EventHandler = Callable[[Event], Awaitable[None]]


def event_handler(event_type: EventType) -> Callable[[EventHandler], EventHandler]:
    """Decorator for marking event handlers.

    Usage:
        @event_handler(EventType.MESSAGE_CONFIRMED)
        async def handle(event: Event) -> None:
            ...

    Args:
        event_type: The event type this handler processes.

    Returns:
        Decorator function.
    """

    def decorator(func: EventHandler) -> EventHandler:
        func._event_type = event_type  # type: ignore[attr-defined]
        return func

    return decorator


def _handler_name(handler: EventHandler) -> str:
    return getattr(handler, "__qualname__", None) or str(handler)


class EventDispatcher:
    """Dispatches events to registered handlers.

    Handlers run one after another in registration order. A handler that
    raises is logged and skipped; the remaining handlers still run.
    """

    def __init__(self) -> None:
        """Initialize the dispatcher."""
        self._handlers: dict[EventType, list[EventHandler]] = {}

    def register(self, event_type: EventType, handler: EventHandler) -> None:
        """Register a handler for an event type.

        Args:
            event_type: The event type to handle.
            handler: The handler function.
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(
            "Registered handler for %s: %s", event_type.value, _handler_name(handler)
        )

    def register_handler(self, handler: EventHandler) -> None:
        """Register a handler that was decorated with @event_handler.

        Args:
            handler: The decorated handler function.

        Raises:
            ValueError: If the handler doesn't have an _event_type attribute.
        """
        event_type = getattr(handler, "_event_type", None)
        if event_type is None:
            raise ValueError(
                f"Handler {_handler_name(handler)} "
                "has no _event_type attribute. "
                "Use the @event_handler decorator."
            )
        self.register(event_type, handler)

    def register_object(self, obj: object) -> int:
        """Register every @event_handler-decorated method of an object.

        Args:
            obj: Component exposing decorated async methods.

        Returns:
            Number of handlers registered.
        """
        count = 0
        for _, method in inspect.getmembers(obj, inspect.ismethod):
            if getattr(method, "_event_type", None) is not None:
                self.register_handler(method)
                count += 1
        return count

    def unregister(self, event_type: EventType, handler: EventHandler) -> None:
        """Remove a handler (no-op if it was not registered)."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    async def dispatch(self, event: Event) -> None:
        """Dispatch an event to all registered handlers.

        Args:
            event: The event to dispatch.
        """
        handlers = list(self._handlers.get(event.type, []))
        if not handlers:
            logger.debug("No handler registered for event type: %s", event.type.value)
            return

        for handler in handlers:
            try:
                await handler(event)
            except Exception:
                logger.exception(
                    "Error in event handler %s for event %s",
                    _handler_name(handler),
                    event.get_identity_key(),
                )
