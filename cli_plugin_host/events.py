"""Observer lists with unsubscribe handles."""

import logging
from typing import Any, Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

Unsubscribe = Callable[[], None]


class Listeners(Generic[F]):
    """Ordered list of callbacks.

    ``add`` returns a callable that removes the listener again. ``emit`` calls
    every listener in registration order; a failing listener is logged (or
    handed to ``on_error``) and does not stop delivery to the rest.
    """

    def __init__(self, name: str = "listeners"):
        self._name = name
        self._callbacks: List[F] = []

    def add(self, callback: F) -> Unsubscribe:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def emit(
        self,
        *args: Any,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        # Snapshot so listeners may unsubscribe while being called
        for callback in list(self._callbacks):
            try:
                callback(*args)
            except Exception as e:
                if on_error is not None:
                    on_error(e)
                else:
                    logger.exception(f"Error in {self._name} listener: {e}")

    def clear(self) -> None:
        self._callbacks.clear()

    def __len__(self) -> int:
        return len(self._callbacks)

    def __bool__(self) -> bool:
        return bool(self._callbacks)
