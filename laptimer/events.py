"""Publish/subscribe primitives and value bindings."""

from __future__ import annotations

import weakref
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class SubscriptionHolder:
    """Keeps a subscription alive until reset, then unsubscribes it."""

    def __init__(self) -> None:
        self._unsubscribe: Callable[[], None] | None = None

    def set_unsubscribe(self, func: Callable[[], None] | None) -> None:
        """Replace the stored unsubscribe action without running the old one."""
        self._unsubscribe = func

    def reset(self) -> None:
        """Run the stored unsubscribe action once and forget it."""
        func, self._unsubscribe = self._unsubscribe, None
        if func is not None:
            func()

    def __enter__(self) -> SubscriptionHolder:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.reset()

    def __del__(self) -> None:
        self.reset()


class Subscription(Generic[T]):
    """A broadcast channel whose callbacks run in subscription order."""

    def __init__(self) -> None:
        self._callbacks: dict[int, Callable[[T], None]] = {}
        self._next_id = 0

    def subscribe(self, callback: Callable[[T], None], holder: SubscriptionHolder) -> None:
        """Register a callback; resetting the holder removes it again."""
        sub_id = self._next_id
        self._next_id += 1
        self._callbacks[sub_id] = callback

        owner = weakref.ref(self)

        def unsubscribe() -> None:
            subscription = owner()
            if subscription is not None:
                subscription._callbacks.pop(sub_id, None)

        holder.set_unsubscribe(unsubscribe)

    def broadcast(self, value: T) -> None:
        """Pass a value to every current subscriber."""
        for callback in list(self._callbacks.values()):
            if callback is not None:
                callback(value)


class MessageBus:
    """Process-wide page-change notifications."""

    def __init__(self) -> None:
        self._handlers: list[Callable[[int], None]] = []

    def subscribe(self, handler: Callable[[int], None]) -> None:
        self._handlers.append(handler)

    def broadcast(self, page_id: int) -> None:
        for handler in list(self._handlers):
            handler(page_id)

    def clear(self) -> None:
        """Drop every handler."""
        self._handlers.clear()


global_bus = MessageBus()


class Binding(Generic[T]):
    """A value read lazily through a getter, with a default when unbound."""

    def __init__(self, default: T, getter: Callable[[], T] | None = None) -> None:
        self._default = default
        self._getter = getter

    def bind(self, getter: Callable[[], T] | None) -> Binding[T]:
        """Attach a getter and return the binding."""
        self._getter = getter
        return self

    def value(self) -> T:
        """Current value from the getter, or the default when none is bound."""
        return self._getter() if self._getter is not None else self._default