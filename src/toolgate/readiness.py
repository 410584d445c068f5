"""Admission gate that mutating tool calls wait on before executing."""

import asyncio
import itertools
from typing import Protocol, runtime_checkable

from loguru import logger

from .errors import ToolgateError


class FlagAlreadyReadyError(ToolgateError):
    """Raised when subscribing to a flag that is already ready."""


@runtime_checkable
class Readiness(Protocol):
    """Wait contract the dispatcher relies on."""

    def is_ready(self) -> bool: ...

    async def wait_ready(self) -> None: ...


class ReadinessFlag:
    """
    One-shot readiness flag guarded by subscription tokens.

    Components that must finish before mutating tools may run subscribe
    for a token; whoever holds a token may flip the flag. A flag nobody
    subscribed to is ready immediately. Once ready it stays ready.
    """

    def __init__(self):
        self._ready = False
        self._tokens: set[int] = set()
        self._counter = itertools.count(1)
        self._event = asyncio.Event()

    def subscribe(self) -> int:
        """
        Obtain a token that can later mark the flag ready.

        Raises:
            FlagAlreadyReadyError: If the flag is already ready
        """
        if self._ready:
            raise FlagAlreadyReadyError("readiness flag is already ready")
        token = next(self._counter)
        self._tokens.add(token)
        return token

    def mark_ready(self, token: int) -> bool:
        """
        Mark the flag ready using a subscription token.

        Returns:
            True if this call flipped the flag, False if the token is
            unknown or the flag was already ready
        """
        if self._ready or token not in self._tokens:
            return False
        self._set_ready()
        logger.debug(f"Readiness flag marked ready by token {token}")
        return True

    def is_ready(self) -> bool:
        if self._ready:
            return True
        if not self._tokens:
            self._set_ready()
            return True
        return False

    async def wait_ready(self) -> None:
        if self.is_ready():
            return
        await self._event.wait()

    def _set_ready(self) -> None:
        self._ready = True
        self._tokens.clear()
        self._event.set()
