"""Session attribute persistence between turns.

The control tree is rebuilt every turn; only the serialized control state
(the session attributes of a response) survives. A ``SessionStore`` keeps
those attributes for hosts that do not round-trip them through the platform,
such as the CLI runner.
"""

import copy
import time
from abc import ABC, abstractmethod
from collections.abc import Callable


class SessionStore(ABC):
    """Abstract base class for session attribute storage."""

    @abstractmethod
    async def save(self, session_id: str, attributes: dict, ttl: int = 3600) -> None:
        """Save session attributes with a TTL.

        Args:
            session_id: Unique identifier for the session
            attributes: Session attributes returned by the last turn
            ttl: Time-to-live in seconds (default: 3600)
        """

    @abstractmethod
    async def load(self, session_id: str) -> dict | None:
        """Load session attributes.

        Returns:
            The attributes if found and not expired, None otherwise
        """

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Forget a session, e.g. once it has ended."""

    @abstractmethod
    async def exists(self, session_id: str) -> bool:
        """Check if a live session exists."""


class InMemorySessionStore(SessionStore):
    """In-memory session store for development and testing.

    Stored attributes are deep copies, so later changes made by the caller
    do not leak into the store. Not suitable for multi-process use.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._store: dict[str, tuple[dict, float]] = {}  # (attributes, expiry_time)

    async def save(self, session_id: str, attributes: dict, ttl: int = 3600) -> None:
        self._store[session_id] = (copy.deepcopy(attributes), self._clock() + ttl)
        self._cleanup_expired()

    async def load(self, session_id: str) -> dict | None:
        if not await self.exists(session_id):
            return None
        attributes, _ = self._store[session_id]
        return copy.deepcopy(attributes)

    async def delete(self, session_id: str) -> None:
        self._store.pop(session_id, None)

    async def exists(self, session_id: str) -> bool:
        if session_id not in self._store:
            return False
        _, expiry_time = self._store[session_id]
        if self._clock() > expiry_time:
            del self._store[session_id]
            return False
        return True

    def __len__(self) -> int:
        return len(self._store)

    def _cleanup_expired(self) -> None:
        """Remove expired sessions from the store."""
        now = self._clock()
        expired = [key for key, (_, expiry_time) in self._store.items() if now > expiry_time]
        for key in expired:
            del self._store[key]
