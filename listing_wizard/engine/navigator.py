"""Navigator - the state machine that walks a QuestionGraph."""

import logging
from typing import Any, Callable, Dict, List, Optional

from .errors import StaleDraftError, ValidationError, WizardError
from .graph import DONE, QuestionGraph, QuestionNode
from .progress import Progress, progress
from .schema import DraftSnapshot
from .store import FieldStore

logger = logging.getLogger(__name__)

_MISSING = object()

Listener = Callable[['Navigator', str], None]


class Navigator:
    """
    Walks a question graph forward and backward.

    States are question keys plus the terminal ``done``. The navigator owns
    every transition; the store only holds answers. Listeners are told about
    ``start``, ``answer``, ``advance``, ``retreat`` and ``resume`` so a
    caller can persist a draft on each step.
    """

    def __init__(self, graph: QuestionGraph, store: Optional[FieldStore] = None):
        self.graph = graph
        self.store = store if store is not None else FieldStore()
        self.history: List[str] = []
        self._current: Optional[str] = None
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    @property
    def current_key(self) -> Optional[str]:
        return self._current

    def start(self) -> Optional[QuestionNode]:
        """Begin at the first reachable question; history is cleared."""
        self.history = []
        self._current = self._first_reachable(self.graph.start_key())
        logger.debug("%s: started at %s", self.graph.name, self._current)
        self._notify('start')
        return self.current()

    def current(self) -> Optional[QuestionNode]:
        if self._current is None or self._current == DONE:
            return None
        return self.graph.node_for(self._current)

    def is_terminal(self) -> bool:
        return self._current == DONE

    def answer(self, value: Any) -> List[str]:
        """
        Validate and record an answer for the current question.

        Returns:
            Keys cleared because the answer made them unreachable

        Raises:
            ValidationError: If the value fails the question's checks or
                leaves a required question unanswered; the store is unchanged
        """
        node = self._require_current()
        value = node.validate(value, self.store)
        if node.required and not node.has_answer(value):
            raise ValidationError(f"An answer is required: {node.prompt}", key=node.key)
        return self._record(node, value)

    def advance(self, answer: Any = _MISSING) -> Optional[QuestionNode]:
        """
        Move to the next reachable question.

        Args:
            answer: Optional answer to record before moving

        Raises:
            ValidationError: If the current question is not answered; the
                navigator stays where it is
        """
        node = self._require_current()
        if answer is not _MISSING:
            self.answer(answer)

        if not node.is_answered(self.store):
            raise ValidationError(f"An answer is required: {node.prompt}", key=node.key)
        if node.key not in self.store:
            # Blank optional answers become known so later conditions can decide
            self._record(node, None)

        self.history.append(node.key)
        self._current = self._first_reachable(node.next_key(self.store))
        logger.debug("%s: %s -> %s", self.graph.name, node.key, self._current)
        self._notify('advance')
        return self.current()

    def retreat(self) -> Optional[QuestionNode]:
        """Step back to the previous question actually visited.

        Raises:
            ValidationError: If there is no previous question
        """
        if not self.history:
            raise ValidationError("Already at the first question", key=self._current)
        self._current = self.history.pop()
        logger.debug("%s: back to %s", self.graph.name, self._current)
        self._notify('retreat')
        return self.current()

    def resume(self, snapshot: DraftSnapshot) -> Optional[QuestionNode]:
        """
        Replace answers and position with a saved draft.

        Nothing changes if the draft cannot be resumed.

        Raises:
            StaleDraftError: If the draft came from another version of the
                graph, or its position is unknown or not on the active route
        """
        if snapshot.version != self.graph.version:
            raise StaleDraftError(
                f"Draft '{snapshot.flow_id}' is for version {snapshot.version}, "
                f"'{self.graph.name}' is version {self.graph.version}"
            )
        key = snapshot.current_key
        if key != DONE and key not in self.graph:
            raise StaleDraftError(f"Draft '{snapshot.flow_id}' points at unknown question '{key}'")

        path = self.graph.path_to(FieldStore(snapshot.answers), key)
        if path is None:
            raise StaleDraftError(
                f"Draft '{snapshot.flow_id}' position '{key}' is not on the active route"
            )

        self.store.replace(snapshot.answers)
        self.history = path
        self._current = key
        logger.debug("%s: resumed at %s with %d answers", self.graph.name, key, len(self.store))
        self._notify('resume')
        return self.current()

    def snapshot(self, flow_id: str) -> DraftSnapshot:
        return DraftSnapshot(
            flow_id=flow_id,
            version=self.graph.version,
            current_key=self._current or self.graph.start_key(),
            answers=self.store.snapshot(),
        )

    def result(self) -> Dict[str, Any]:
        """Answers on the route actually selected; stale values are dropped."""
        return self.graph.live_answers(self.store)

    def progress(self) -> Progress:
        return progress(self.graph, self.store, self._current or self.graph.start_key())

    def _record(self, node: QuestionNode, value: Any) -> List[str]:
        before = self.graph.live_keys(self.store)
        if not self.store.set(node.key, value):
            return []

        stale = before - self.graph.live_keys(self.store) - {node.key}
        cleared = self.store.clear_many(
            sorted(stale, key=self.graph.position)
        )
        if cleared:
            logger.debug("%s: %s cleared %s", self.graph.name, node.key, cleared)
        self._notify('answer')
        return cleared

    def _first_reachable(self, key: str) -> str:
        while key != DONE:
            node = self.graph.node_for(key)
            if node.is_reachable(self.store):
                return key
            key = node.next_key(self.store)
        return DONE

    def _require_current(self) -> QuestionNode:
        if self._current is None:
            raise WizardError("Navigator has not been started")
        if self._current == DONE:
            raise WizardError(f"'{self.graph.name}' is already complete")
        return self.graph.node_for(self._current)

    def _notify(self, event: str) -> None:
        for listener in self._listeners:
            listener(self, event)
