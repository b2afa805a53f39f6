"""
Persistence boundary.

The engine never writes to storage. It exposes a minimal snapshot of a session
and a writer that forwards snapshots to an external save callback, skipping
payloads identical to the last successful write. Debouncing and async I/O
belong to the caller.
"""

import json
import logging
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, Field

from quizcentral.runtime.state_store import StateStore
from quizcentral.schemas.runtime import QuizSessionState

logger = logging.getLogger(__name__)


class SessionSnapshot(BaseModel):
    """What a persistence layer stores for a session."""

    current_step_id: str
    variables: Dict[str, Any] = Field(default_factory=dict)
    answers: Dict[str, Any] = Field(default_factory=dict, description="Node id to non-null value")

    @classmethod
    def from_state(cls, state: QuizSessionState) -> "SessionSnapshot":
        answers = {node_id: node.value for node_id, node in state.nodes.items() if node.value is not None}
        return cls(
            current_step_id=state.current_step_id,
            variables=dict(state.variables),
            answers=answers,
        )

    def payload(self) -> str:
        """Canonical serialized form used for the last-write diff."""
        return json.dumps(self.model_dump(mode="json"), sort_keys=True, default=str)


SaveCallback = Callable[[SessionSnapshot], None]


class SnapshotWriter:
    """
    Forwards session snapshots to `save`, skipping unchanged payloads.

    A save that raises is logged and not recorded, so the next change is
    attempted again.
    """

    def __init__(self, save: SaveCallback):
        self._save = save
        self._last_payload: Optional[str] = None

    @property
    def last_payload(self) -> Optional[str]:
        return self._last_payload

    def write(self, state: QuizSessionState) -> bool:
        """
        Save a snapshot of `state` if it differs from the last write.

        Returns:
            True if the save callback ran successfully
        """
        snapshot = SessionSnapshot.from_state(state)
        payload = snapshot.payload()
        if payload == self._last_payload:
            return False

        logger.info(f"Saving session {state.session_id} (step {state.current_step_id})")
        try:
            self._save(snapshot)
        except Exception as e:
            logger.error(f"Saving session {state.session_id} failed: {e}")
            return False

        self._last_payload = payload
        return True

    def attach(self, store: StateStore) -> Callable[[], None]:
        """Write on every state change; returns the unsubscribe function."""
        return store.subscribe(self.write)
