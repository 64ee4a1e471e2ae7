# sportlink/core/realtime.py
import itertools
import logging
import threading
from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class MessageFeed:
    """
    In-process live query over the messages table.

    Subscribers register for a user id and are called whenever a message
    involving that user is written. The notification carries no payload:
    listeners reload the full snapshot and re-aggregate, they never apply
    diffs.

    Thread-safe: writes happen in threadpool workers while WebSocket
    listeners live on the event loop.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._subscribers: dict[int, tuple[str, Listener]] = {}

    def subscribe(self, user_id: str, listener: Listener) -> Callable[[], None]:
        """
        Register `listener` for messages involving `user_id`.

        Returns:
            An idempotent unsubscribe callable. Call it when the consuming
            view goes away.
        """
        with self._lock:
            token = next(self._ids)
            self._subscribers[token] = (user_id, listener)

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    def subscriber_count(self, user_id: str | None = None) -> int:
        with self._lock:
            if user_id is None:
                return len(self._subscribers)
            return sum(1 for uid, _ in self._subscribers.values() if uid == user_id)

    def notify(self, user_ids: Iterable[str]) -> None:
        """Call every listener subscribed for one of `user_ids`."""
        targets = set(user_ids)
        with self._lock:
            listeners = [
                listener
                for uid, listener in self._subscribers.values()
                if uid in targets
            ]

        for listener in listeners:
            try:
                listener()
            except Exception:
                # One broken subscriber must not block delivery to the others.
                logger.exception("Message feed listener failed")


# Process-wide feed shared by the messaging service and the WebSocket route
message_feed = MessageFeed()
