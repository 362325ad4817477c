"""
Transient user-facing notifications.

One error slot and one success slot. Posting replaces whatever the slot held
and restarts its timer; a message is gone once ``ttl`` seconds have passed.
Expiry is evaluated on read against an injectable clock, so no timer thread is
needed and tests can drive time directly.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Literal, Optional

from paymentflow.builder.constants import NOTIFICATION_TTL_SECONDS

NotificationKind = Literal["error", "success"]

@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    message: str
    posted_at: float

class NotificationCenter:
    """
    Holds at most one message per kind.

    Args:
        ttl: Seconds a message stays visible.
        clock: Monotonic time source.
        on_change: Called with ``(kind, message_or_None)`` whenever a slot is
            posted to or cleared explicitly.
    """

    def __init__(
        self,
        ttl: float = NOTIFICATION_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        on_change: Optional[Callable[[NotificationKind, Optional[str]], None]] = None,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self.on_change = on_change
        self._slots: Dict[NotificationKind, Optional[Notification]] = {"error": None, "success": None}

    # --- Posting ---

    def post_error(self, message: str) -> None:
        self._post("error", message)

    def post_success(self, message: str) -> None:
        self._post("success", message)

    def clear_error(self) -> None:
        self._clear("error")

    def clear_success(self) -> None:
        self._clear("success")

    # --- Reading ---

    @property
    def error(self) -> Optional[str]:
        return self._read("error")

    @property
    def success(self) -> Optional[str]:
        return self._read("success")

    def snapshot(self) -> Dict[str, Optional[str]]:
        return {"error": self.error, "success": self.success}

    # --- Internals ---

    def _post(self, kind: NotificationKind, message: str) -> None:
        self._slots[kind] = Notification(kind=kind, message=message, posted_at=self._clock())
        if self.on_change:
            self.on_change(kind, message)

    def _clear(self, kind: NotificationKind) -> None:
        if self._slots[kind] is None:
            return
        self._slots[kind] = None
        if self.on_change:
            self.on_change(kind, None)

    def _read(self, kind: NotificationKind) -> Optional[str]:
        note = self._slots[kind]
        if note is None:
            return None
        if self._clock() - note.posted_at >= self.ttl:
            self._slots[kind] = None
            return None
        return note.message
