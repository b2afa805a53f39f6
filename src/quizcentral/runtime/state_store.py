"""
State Store - the observable container for the session snapshot.

Holds one immutable QuizSessionState at a time. Writers replace the whole
snapshot; subscribers are called with the new snapshot after each change.
"""

import logging
from typing import Any, Callable, List, Optional

from quizcentral.schemas.runtime import BlockRuntimeState, QuizSessionState

logger = logging.getLogger(__name__)

Subscriber = Callable[[QuizSessionState], None]


class StateStore:
    """Publish/subscribe holder of the current session state."""

    def __init__(self, initial_state: QuizSessionState):
        self._state = initial_state
        self._subscribers: List[Subscriber] = []

    def get_state(self) -> QuizSessionState:
        """Return the current snapshot (read-only)."""
        return self._state

    def set_state(self, new_state: QuizSessionState) -> None:
        """Replace the snapshot and notify subscribers, unless it is the same object."""
        if new_state is self._state:
            return
        self._state = new_state
        self._notify()

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """
        Register a subscriber.

        Returns:
            A function that unsubscribes it (safe to call more than once)
        """
        if subscriber not in self._subscribers:
            self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def _notify(self) -> None:
        state = self._state
        for subscriber in list(self._subscribers):
            try:
                subscriber(state)
            except Exception as e:
                logger.error(f"State subscriber {subscriber!r} failed: {e}", exc_info=True)

    def get_node(self, node_id: str) -> Optional[BlockRuntimeState]:
        return self._state.nodes.get(node_id)

    def get_global_variable(self, key: str) -> Any:
        return self._state.variables.get(key)
