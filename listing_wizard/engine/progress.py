"""Progress calculation for question graphs.

Totals are worst case: while a branching answer is unknown the longest
remaining branch counts, so "Question X of Y" only ever shrinks as the
user fills in a fixed route.
"""

from dataclasses import dataclass
from typing import Dict

from .graph import DONE, QuestionGraph


@dataclass(frozen=True)
class Progress:
    """Current position in a flow."""

    step: int
    total: int

    @property
    def label(self) -> str:
        return f"Question {self.step} of {self.total}"

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 100
        return round(100 * min(self.step, self.total) / self.total)


def total_steps(graph: QuestionGraph, store) -> int:
    """Number of questions on the longest route the answers still allow.

    Nodes whose condition is false are skipped along their ``next_key``.
    Nodes that are reachable or not yet decidable count as one step; an
    unanswered branch counts its longest successor.
    """
    remaining: Dict[str, int] = {DONE: 0}
    for key in reversed(graph.topological_order()):
        node = graph.node_for(key)
        state = node.reachability(store)
        if state is False:
            remaining[key] = remaining[node.next_key(store)]
        elif node.is_determined(store):
            remaining[key] = 1 + remaining[node.next_key(store)]
        else:
            remaining[key] = 1 + max(remaining[target] for target in node.successors())
    return remaining[graph.start_key()]


def step_number(graph: QuestionGraph, store, current_key: str) -> int:
    """1-based step of ``current_key``; ``done`` reports the total.

    Raises:
        ValueError: If ``current_key`` is not on the active route
    """
    if current_key == DONE:
        return total_steps(graph, store)
    path = graph.path_to(store, current_key)
    if path is None:
        raise ValueError(f"Question '{current_key}' is not on the active route of '{graph.name}'")
    return len(path) + 1


def progress(graph: QuestionGraph, store, current_key: str) -> Progress:
    return Progress(
        step=step_number(graph, store, current_key),
        total=total_steps(graph, store),
    )
