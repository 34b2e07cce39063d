"""Explicit session state for API consumers.

The provider owns the signed-in identity and tells subscribers about every
change, so dependents can drop data cached for a previous user.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)

INITIAL_SESSION = "INITIAL_SESSION"
SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: str
    display_name: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "SessionUser":
        return cls(
            id=str(data["id"]),
            email=data["email"],
            display_name=data.get("display_name"),
        )


@dataclass(frozen=True)
class SessionEvent:
    name: str
    user: Optional[SessionUser]


SessionListener = Callable[[SessionEvent], None]


class SessionProvider:
    def __init__(self):
        self._user: Optional[SessionUser] = None
        self._listeners: List[SessionListener] = []

    @property
    def current(self) -> Optional[SessionUser]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self, user: SessionUser, event: str = SIGNED_IN) -> None:
        self._user = user
        logger.info("Session %s for user %s", event, user.id)
        self._publish(SessionEvent(event, user))

    def end(self) -> None:
        if self._user is None:
            return
        logger.info("Session ended for user %s", self._user.id)
        self._user = None
        self._publish(SessionEvent(SIGNED_OUT, None))

    def _publish(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
