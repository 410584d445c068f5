"""Session-scoped fan-out of after-the-fact hook events."""

import inspect
from typing import Any, Awaitable, Callable, Union

from loguru import logger

from .events import HookPayload

HookListener = Callable[[HookPayload], Union[None, Awaitable[None]]]


class HookDispatcher:
    """
    Deliver after-the-fact events to registered listeners.

    Listeners run sequentially in registration order. They are audit-only:
    a listener that raises is logged and skipped, and can never change the
    outcome of the tool call that produced the event.
    """

    def __init__(self, listeners: list[HookListener] | None = None):
        self._listeners: list[HookListener] = list(listeners or [])

    def register(self, listener: HookListener) -> None:
        """Register a sync or async listener."""
        self._listeners.append(listener)

    def unregister(self, listener: HookListener) -> bool:
        """Remove a listener. Returns False if it was not registered."""
        try:
            self._listeners.remove(listener)
            return True
        except ValueError:
            return False

    @property
    def listeners(self) -> tuple[HookListener, ...]:
        return tuple(self._listeners)

    async def dispatch(self, payload: HookPayload) -> None:
        """Deliver one event to every listener and wait for all of them."""
        event = payload.hook_event
        for listener in list(self._listeners):
            try:
                result: Any = listener(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    "After-tool-use listener failed | tool={} call_id={} error={}",
                    event.tool_name,
                    event.call_id,
                    e,
                )
