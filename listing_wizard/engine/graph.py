"""QuestionGraph - static question table with reachability and routing."""

import logging
from collections import deque
from typing import Any, Callable, Dict, FrozenSet, Iterator, List, Optional, Sequence, Tuple

from .conditions import Condition
from .errors import ConfigurationError, ValidationError
from .schema import GroupField, Question, QuestionKind, SectionSpec

logger = logging.getLogger(__name__)

DONE = "done"

Validator = Callable[[Any, Dict[str, Any]], Any]


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return not value
    return False


def _context(store) -> Dict[str, Any]:
    """Validator context: a plain copy of the answers."""
    if hasattr(store, 'snapshot'):
        return store.snapshot()
    return dict(store)


class QuestionNode:
    """
    A single addressable question in a graph.

    Wraps the declarative Question with its compiled reachability condition,
    resolved validators and routing rule.
    """

    def __init__(self, question: Question, sequential_key: str, validators: Dict[str, Validator]):
        self.question = question
        self.key = question.key
        self.kind = question.kind
        self.required = question.required
        self.condition = Condition(question.when)
        self._sequential_key = sequential_key
        self._validator = self._resolve_validator(question.validator, validators)
        self._field_validators = {
            field.key: self._resolve_validator(field.validator, validators)
            for field in question.fields or []
        }
        self._routes, self._default = self._parse_next(question.next)

    @property
    def prompt(self) -> str:
        return self.question.prompt or self.key

    @property
    def branches(self) -> bool:
        """True if the next question depends on this question's answer."""
        return bool(self._routes)

    def is_reachable(self, store) -> bool:
        return self.condition(store)

    def reachability(self, store) -> Optional[bool]:
        """Tri-state reachability; None while the condition's inputs are unknown."""
        return self.condition.evaluate(store)

    def is_determined(self, store) -> bool:
        """True if ``next_key`` no longer depends on a missing answer."""
        return not self._routes or self.key in store

    def next_key(self, store) -> str:
        if self._routes and self.key in store:
            value = store.get(self.key)
            if isinstance(value, str) and value in self._routes:
                return self._routes[value]
        return self._default or self._sequential_key

    def successors(self) -> List[str]:
        """Every key ``next_key`` can return, in declaration order."""
        keys = list(self._routes.values()) + [self._default or self._sequential_key]
        return list(dict.fromkeys(keys))

    def is_answered(self, store) -> bool:
        if not self.required:
            return True
        if self.key not in store:
            return False
        return self.has_answer(store.get(self.key))

    def validate(self, value: Any, store) -> Any:
        """Check ``value`` against this question and return it normalised.

        Raises:
            ValidationError: If the value has the wrong shape, is not one of
                the options, or the registered validator rejects it
        """
        normalized = self._normalize(value, store)
        if self._validator and not is_blank(normalized):
            try:
                normalized = self._validator(normalized, _context(store))
            except ValueError as e:
                raise ValidationError(str(e), key=self.key) from e
        return normalized

    def has_answer(self, value: Any) -> bool:
        """True if a normalised ``value`` would satisfy a required question."""
        options = self.question.option_values()
        if self.kind == QuestionKind.SINGLE_CHOICE:
            return isinstance(value, str) and value in options
        if self.kind == QuestionKind.MULTI_CHOICE:
            return isinstance(value, list) and bool(value) and all(item in options for item in value)
        if self.kind == QuestionKind.GROUP:
            if not isinstance(value, dict):
                return False
            return all(
                self._field_answered(field, value.get(field.key))
                for field in self.question.fields
                if field.required
            )
        return not is_blank(value)

    @staticmethod
    def _field_answered(field: GroupField, value: Any) -> bool:
        if field.kind == QuestionKind.SINGLE_CHOICE:
            return value in field.option_values()
        return not is_blank(value)

    def _normalize(self, value: Any, store) -> Any:
        if self.kind == QuestionKind.SINGLE_CHOICE:
            if is_blank(value):
                return None
            options = self.question.option_values()
            if not isinstance(value, str) or value not in options:
                raise ValidationError(
                    f"'{value}' is not one of: {', '.join(options)}", key=self.key
                )
            return value

        if self.kind == QuestionKind.MULTI_CHOICE:
            if value is None:
                return []
            if isinstance(value, str) or not isinstance(value, (list, tuple, set)):
                raise ValidationError("Expected a list of selections", key=self.key)
            options = self.question.option_values()
            unknown = [item for item in value if item not in options]
            if unknown:
                raise ValidationError(
                    f"Unknown selection(s): {', '.join(map(str, unknown))}", key=self.key
                )
            return list(dict.fromkeys(value))

        if self.kind == QuestionKind.GROUP:
            return self._normalize_group(value, store)

        # free_text and file
        if is_blank(value):
            return None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str):
            raise ValidationError("Expected text", key=self.key)
        return value.strip()

    def _normalize_group(self, value: Any, store) -> Dict[str, Any]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValidationError("Expected a set of field values", key=self.key)

        fields = {field.key: field for field in self.question.fields}
        unknown = sorted(set(value) - set(fields))
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(unknown)}", key=self.key)

        normalized = {}
        for field_key, raw in value.items():
            field = fields[field_key]
            if isinstance(raw, str):
                raw = raw.strip()
            if field.kind == QuestionKind.SINGLE_CHOICE and not is_blank(raw):
                if raw not in field.option_values():
                    raise ValidationError(
                        f"{field.label}: '{raw}' is not one of: {', '.join(field.option_values())}",
                        key=self.key,
                    )
            validator = self._field_validators.get(field_key)
            if validator and not is_blank(raw):
                try:
                    raw = validator(raw, _context(store))
                except ValueError as e:
                    raise ValidationError(f"{field.label}: {e}", key=self.key) from e
            normalized[field_key] = raw
        return normalized

    def _resolve_validator(self, name: Optional[str], validators: Dict[str, Validator]) -> Optional[Validator]:
        if name is None:
            return None
        if name not in validators:
            raise ConfigurationError(f"Question '{self.key}' uses unknown validator '{name}'")
        return validators[name]

    def _parse_next(self, spec) -> Tuple[Dict[str, str], Optional[str]]:
        """Split a ``next`` declaration into value routes and a default key."""
        if spec is None:
            return {}, None
        if isinstance(spec, str):
            return {}, spec
        if not isinstance(spec, dict):
            raise ConfigurationError(f"Question '{self.key}' has an invalid next: {spec!r}")

        unknown = set(spec) - {'when_value', 'default'}
        if unknown:
            raise ConfigurationError(
                f"Question '{self.key}' next has unsupported entries: {', '.join(sorted(unknown))}"
            )
        routes = spec.get('when_value') or {}
        if not isinstance(routes, dict):
            raise ConfigurationError(f"Question '{self.key}' when_value must be a mapping")
        for answer, target in routes.items():
            # Unquoted yes/no in YAML load as booleans
            if not isinstance(answer, str) or not isinstance(target, str):
                raise ConfigurationError(
                    f"Question '{self.key}' when_value entries must map strings to keys, "
                    f"got {answer!r}: {target!r}"
                )
        if self.kind != QuestionKind.SINGLE_CHOICE and routes:
            raise ConfigurationError(f"Question '{self.key}' can only branch on a single_choice answer")
        for answer in routes:
            if answer not in self.question.option_values():
                raise ConfigurationError(
                    f"Question '{self.key}' routes on '{answer}' which is not one of its options"
                )
        default = spec.get('default')
        if default is not None and not isinstance(default, str):
            raise ConfigurationError(f"Question '{self.key}' next default must be a key")
        return dict(routes), default

    def __repr__(self) -> str:
        return f"QuestionNode({self.key!r}, kind={self.kind.value!r})"


class QuestionGraph:
    """
    Directed acyclic graph of questions built from a static table.

    The table order is the default route; ``next`` declarations override it
    and ``when`` conditions decide which questions are reachable. The graph
    never changes after construction; only the FieldStore does.

    Every structural problem is reported here as a ConfigurationError so a
    broken table fails when it is loaded, not halfway through a flow.
    """

    def __init__(self, questions: Sequence[Question], validators: Optional[Dict[str, Validator]] = None,
                 name: str = "flow", version: str = "1"):
        self.name = name
        self.version = str(version)

        if not questions:
            raise ConfigurationError(f"Graph '{name}' has no questions")

        keys = [question.key for question in questions]
        duplicates = sorted({key for key in keys if keys.count(key) > 1})
        if duplicates:
            raise ConfigurationError(f"Graph '{name}' has duplicate question keys: {', '.join(duplicates)}")
        if DONE in keys:
            raise ConfigurationError(f"'{DONE}' is reserved and cannot be used as a question key")

        self._order: List[str] = keys
        self._positions = {key: index for index, key in enumerate(keys)}
        self._nodes: Dict[str, QuestionNode] = {}
        for index, question in enumerate(questions):
            sequential = keys[index + 1] if index + 1 < len(keys) else DONE
            self._nodes[question.key] = QuestionNode(question, sequential, validators or {})

        self._check_targets()
        self._check_conditions()
        self._topological = self._check_acyclic()
        self._check_reachability()
        self._descendants = self._compute_descendants()

    @classmethod
    def from_spec(cls, spec: SectionSpec, validators: Optional[Dict[str, Validator]] = None) -> 'QuestionGraph':
        return cls(spec.questions, validators, name=spec.section, version=str(spec.version))

    def start_key(self) -> str:
        return self._order[0]

    def node_for(self, key: str) -> QuestionNode:
        try:
            return self._nodes[key]
        except KeyError:
            raise KeyError(f"Unknown question '{key}' in graph '{self.name}'") from None

    def position(self, key: str) -> int:
        """Declaration index of ``key``; ``done`` sorts last."""
        if key == DONE:
            return len(self._order)
        return self._positions[key]

    def topological_order(self) -> List[str]:
        return list(self._topological)

    def descendants(self, key: str) -> FrozenSet[str]:
        """Every question that can follow ``key`` on some route."""
        return self._descendants[key]

    def __iter__(self) -> Iterator[QuestionNode]:
        return (self._nodes[key] for key in self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, key: str) -> bool:
        return key in self._nodes

    def live_keys(self, store) -> set:
        """Keys whose answers still matter under the current answers.

        Covers the route the answers select plus, past the first branch
        that is still unanswered, every question that could follow it.
        """
        route, frontier = self._route(store)
        live = {node.key for node, state in route if state is not False}
        if frontier is not None:
            live |= self._descendants[frontier]
        return live

    def live_answers(self, store) -> Dict[str, Any]:
        """Answers of reachable questions on the selected route only."""
        route, _ = self._route(store)
        answers = {}
        for node, state in route:
            if state is True and node.key in store:
                value = store.get(node.key)
                if value is not None:
                    answers[node.key] = value
        return answers

    def path_to(self, store, key: str) -> Optional[List[str]]:
        """Reachable questions a user passes on the way to ``key``.

        Returns:
            Keys in visiting order, or None if ``key`` is not on the active
            route or a question before it is unanswered.
        """
        if key != DONE and key not in self._nodes:
            return None
        path = []
        current = self.start_key()
        while current != DONE:
            node = self._nodes[current]
            if node.is_reachable(store):
                if current == key:
                    return path
                if not node.is_answered(store):
                    return None
                path.append(current)
            current = node.next_key(store)
        return path if key == DONE else None

    def _route(self, store) -> Tuple[List[Tuple[QuestionNode, Optional[bool]]], Optional[str]]:
        """Walk from the start along the route the answers select.

        Returns:
            (node, reachability) pairs in visiting order and the key of the
            first reachable branch whose answer is missing (None if the walk
            reached ``done``).
        """
        route = []
        key = self.start_key()
        while key != DONE:
            node = self._nodes[key]
            state = node.reachability(store)
            route.append((node, state))
            if state is not False and not node.is_determined(store):
                return route, key
            key = node.next_key(store)
        return route, None

    def _check_targets(self):
        for node in self:
            for target in node.successors():
                if target != DONE and target not in self._nodes:
                    raise ConfigurationError(
                        f"Question '{node.key}' routes to unknown question '{target}'"
                    )

    def _check_conditions(self):
        for node in self:
            for key in sorted(node.condition.keys):
                if key not in self._nodes:
                    raise ConfigurationError(
                        f"Question '{node.key}' condition refers to unknown question '{key}'"
                    )
                if self._positions[key] >= self._positions[node.key]:
                    raise ConfigurationError(
                        f"Question '{node.key}' condition refers to '{key}', "
                        f"which is not declared before it"
                    )

    def _check_acyclic(self) -> List[str]:
        """Kahn's algorithm over the static successor edges."""
        indegree = {key: 0 for key in self._order}
        for node in self:
            for target in node.successors():
                if target != DONE:
                    indegree[target] += 1

        ready = deque(key for key in self._order if indegree[key] == 0)
        order = []
        while ready:
            key = ready.popleft()
            order.append(key)
            for target in self._nodes[key].successors():
                if target == DONE:
                    continue
                indegree[target] -= 1
                if indegree[target] == 0:
                    ready.append(target)

        if len(order) < len(self._order):
            cyclic = [key for key in self._order if indegree[key] > 0]
            raise ConfigurationError(
                f"Graph '{self.name}' has a cycle through: {', '.join(cyclic)}"
            )
        return order

    def _check_reachability(self):
        seen = {self.start_key()}
        pending = deque([self.start_key()])
        while pending:
            for target in self._nodes[pending.popleft()].successors():
                if target != DONE and target not in seen:
                    seen.add(target)
                    pending.append(target)
        orphans = [key for key in self._order if key not in seen]
        if orphans:
            raise ConfigurationError(
                f"Graph '{self.name}' has questions unreachable from the start: {', '.join(orphans)}"
            )

        finishes = {}
        for key in reversed(self._topological):
            finishes[key] = any(
                target == DONE or finishes[target] for target in self._nodes[key].successors()
            )
        stuck = [key for key in self._order if not finishes[key]]
        if stuck:
            raise ConfigurationError(
                f"Graph '{self.name}' cannot reach '{DONE}' from: {', '.join(stuck)}"
            )

    def _compute_descendants(self) -> Dict[str, FrozenSet[str]]:
        descendants: Dict[str, FrozenSet[str]] = {}
        for key in reversed(self._topological):
            reached = set()
            for target in self._nodes[key].successors():
                if target != DONE:
                    reached.add(target)
                    reached |= descendants[target]
            descendants[key] = frozenset(reached)
        return descendants

    def __repr__(self) -> str:
        return f"QuestionGraph({self.name!r}, {len(self)} questions)"
