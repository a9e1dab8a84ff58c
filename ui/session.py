"""Client session context.

Lifecycle::

    init --sign_in--> active --refresh_if_due--> refreshed --sign_out--> torn_down

The access token is refreshed on a fixed interval (30 minutes by default)
whenever ``refresh_if_due`` is called. Chat history belongs to the signed-in
user: it is opened on sign-in and cleared on sign-out.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from ui.history import DEFAULT_LIMIT, ChatHistoryStore

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = timedelta(minutes=30)


class SessionState(str, Enum):
    init = "init"
    active = "active"
    refreshed = "refreshed"
    torn_down = "torn_down"


class SessionError(RuntimeError):
    """Session used outside the signed-in states."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionContext:
    """Signed-in user, access token and refresh bookkeeping."""

    history_dir: Path
    history_limit: int = DEFAULT_LIMIT
    refresh_fn: Callable[[str], str] | None = None
    refresh_interval: timedelta = DEFAULT_REFRESH_INTERVAL
    clock: Callable[[], datetime] = _utcnow
    state: SessionState = SessionState.init
    token: str | None = None
    user: dict[str, Any] = field(default_factory=dict)
    last_refreshed_at: datetime | None = None
    _history: ChatHistoryStore | None = field(default=None, init=False, repr=False)

    @property
    def is_authenticated(self) -> bool:
        return self.state in (SessionState.active, SessionState.refreshed) and bool(self.token)

    @property
    def history(self) -> ChatHistoryStore:
        if self._history is None:
            raise SessionError("Not signed in")
        return self._history

    def sign_in(self, token: str, user: dict[str, Any]) -> None:
        """Start the session and open the user's chat history.

        Raises:
            SessionError: Already signed in, or ``user`` has no ``user_id``
        """
        if self.is_authenticated:
            raise SessionError("Already signed in")
        user_id = str(user.get("user_id") or "").strip()
        if not user_id:
            raise SessionError("user_id is required to sign in")

        self._history = ChatHistoryStore(self.history_dir, user_id, self.history_limit)
        self.token = token
        self.user = dict(user)
        self.last_refreshed_at = self.clock()
        self.state = SessionState.active

    def refresh_if_due(self) -> bool:
        """Refresh the token once the interval has elapsed.

        A failed refresh is logged and the current token kept; the next call
        tries again.

        Returns:
            True if the token was refreshed
        """
        if not self.is_authenticated or self.last_refreshed_at is None:
            return False

        now = self.clock()
        if now - self.last_refreshed_at < self.refresh_interval:
            return False

        if self.refresh_fn is not None:
            try:
                self.token = self.refresh_fn(self.token or "")
            except Exception as e:
                logger.error("Session refresh error: %s", e)
                return False

        self.last_refreshed_at = now
        self.state = SessionState.refreshed
        logger.info("Session refreshed automatically")
        return True

    def abandon(self) -> None:
        """Drop a sign-in that never completed; stored history is left alone."""
        self._history = None
        self.token = None
        self.user = {}
        self.last_refreshed_at = None
        self.state = SessionState.init

    def sign_out(self) -> None:
        """Tear the session down and clear this user's chat history."""
        if self._history is not None:
            self._history.clear()
        self._history = None
        self.token = None
        self.user = {}
        self.last_refreshed_at = None
        self.state = SessionState.torn_down

    def auth_header(self) -> dict[str, str]:
        if not self.is_authenticated:
            raise SessionError("Not signed in")
        return {"Authorization": f"Bearer {self.token}"}
