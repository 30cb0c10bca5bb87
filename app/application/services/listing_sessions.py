import logging
import uuid
from collections import OrderedDict
from typing import Callable, Tuple

from .filter_state import FilterStateManager
from .listing_service import ListingQueryExecutor

logger = logging.getLogger(__name__)


class ListingSessionRegistry:
    """In-memory browsing sessions, least recently used evicted first."""

    def __init__(self, executor_factory: Callable[[], ListingQueryExecutor], max_sessions: int = 1000) -> None:
        self._executor_factory = executor_factory
        self._max_sessions = max_sessions
        self._sessions: "OrderedDict[str, FilterStateManager]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> Tuple[str, FilterStateManager]:
        session_id = str(uuid.uuid4())
        # one executor per session keeps request sequencing per browsing session
        manager = FilterStateManager(self._executor_factory())
        self._sessions[session_id] = manager
        while len(self._sessions) > self._max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info(f"Evicted listing session {evicted}")
        return session_id, manager

    def get(self, session_id: str) -> FilterStateManager:
        manager = self._sessions[session_id]
        self._sessions.move_to_end(session_id)
        return manager

    def drop(self, session_id: str) -> None:
        del self._sessions[session_id]
