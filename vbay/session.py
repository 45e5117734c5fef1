from typing import Callable, Optional

from vbay.log import get_logger
from vbay.models import User

logger = get_logger(__name__)

SessionHook = Callable[[Optional[User]], None]


class SessionManager:
    """Holds the single active user, if any. Users are replaced, never edited."""

    def __init__(self, user: Optional[User] = None,
                 on_change: Optional[SessionHook] = None) -> None:
        self._user = user
        self._on_change = on_change
        self._on_logout: list[Callable[[], None]] = []

    def on_logout(self, callback: Callable[[], None]) -> None:
        self._on_logout.append(callback)

    def login(self, user: User) -> None:
        self._user = user
        logger.info("User %s (%s) logged in", user.id, user.email)
        if self._on_change is not None:
            self._on_change(user)

    def logout(self) -> None:
        previous = self._user
        self._user = None
        if previous is not None:
            logger.info("User %s logged out", previous.id)
        if self._on_change is not None:
            self._on_change(None)
        for callback in self._on_logout:
            callback()

    def current_user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None
