"""Per-user conversation history kept in process memory."""

import threading
from collections import deque

from .config import config
from .models import ConversationTurn, Role

logger = config.get_logger(__name__)

MAX_TURNS = 10


class ConversationMemory:
    """Bounded, per-user history of conversation turns.

    Each user keeps at most ``max_turns`` turns; the oldest is evicted first.
    Users are never dropped, so the number of tracked users is unbounded.
    """

    def __init__(self, max_turns: int = MAX_TURNS) -> None:
        """Initialize an empty memory.

        Args:
            max_turns: Turns kept per user.
        """
        self.max_turns = max_turns
        self._histories: dict[str, deque[ConversationTurn]] = {}
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, user_id: str) -> threading.Lock:
        # dict.setdefault is atomic, so two threads always agree on one lock
        return self._locks.setdefault(user_id, threading.Lock())

    def _history(self, user_id: str) -> deque[ConversationTurn]:
        history = self._histories.get(user_id)
        if history is None:
            history = deque(maxlen=self.max_turns)
            self._histories[user_id] = history
        return history

    def append(self, user_id: str, role: Role | str, content: str) -> None:
        """Record one turn for a user, evicting the oldest past the cap."""
        turn = ConversationTurn(role=Role(role), content=content)
        with self._lock_for(user_id):
            history = self._history(user_id)
            history.append(turn)

    def record_exchange(self, user_id: str, question: str, answer: str) -> None:
        """Append a question and its answer as one unit."""
        with self._lock_for(user_id):
            history = self._history(user_id)
            history.append(ConversationTurn(role=Role.USER, content=question))
            history.append(ConversationTurn(role=Role.ASSISTANT, content=answer))

    def get(self, user_id: str) -> tuple[ConversationTurn, ...]:
        """Return a snapshot of a user's turns, oldest first."""
        if user_id not in self._histories:
            return ()
        with self._lock_for(user_id):
            return tuple(self._histories.get(user_id, ()))

    def clear(self, user_id: str) -> None:
        """Forget a user's history."""
        with self._lock_for(user_id):
            self._histories.pop(user_id, None)
        logger.info("Conversation history cleared for %s", user_id)

    @property
    def active_conversations(self) -> int:
        return len(self._histories)
