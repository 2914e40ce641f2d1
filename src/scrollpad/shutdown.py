"""Broadcast shutdown signal shared by the poller and the render loop."""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class Subscription:
    """One subscriber's view of a :class:`Shutdown` signal."""

    def __init__(self, shutdown: Shutdown) -> None:
        self._shutdown = shutdown
        self._event = asyncio.Event()

    def is_set(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        """Suspend until the signal has been raised."""
        await self._event.wait()

    def _notify(self) -> None:
        self._event.set()

    def close(self) -> None:
        """Stop receiving the signal."""
        self._shutdown._unsubscribe(self)


class Shutdown:
    """Single-shot broadcast notification.

    Any holder may call :meth:`trigger`; every subscription is notified
    once. Triggering again is a no-op, and a subscription taken after the
    signal fired is already set.
    """

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._triggered = False

    @property
    def triggered(self) -> bool:
        return self._triggered

    def subscribe(self) -> Subscription:
        subscription = Subscription(self)
        if self._triggered:
            subscription._notify()
        else:
            self._subscriptions.append(subscription)
        return subscription

    def trigger(self, reason: str = "") -> None:
        if self._triggered:
            return
        self._triggered = True
        logger.debug(
            "shutdown triggered%s (%d subscribers)",
            f" by {reason}" if reason else "",
            len(self._subscriptions),
        )
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription._notify()

    def _unsubscribe(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass
