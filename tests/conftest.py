"""Shared fixtures for engine tests."""

import pytest
from listing_wizard.engine.graph import QuestionGraph
from listing_wizard.engine.runner import MockActionRunner
from listing_wizard.engine.schema import Question

YES_NO = [{'value': 'yes', 'label': 'Yes'}, {'value': 'no', 'label': 'No'}]


def build_graph(questions, validators=None, name='test', version='1'):
    """Build a QuestionGraph from plain question dicts."""
    return QuestionGraph([Question(**q) for q in questions], validators, name=name, version=version)


@pytest.fixture
def make_graph():
    """Factory fixture wrapping build_graph."""
    return build_graph


@pytest.fixture
def mock_runner():
    """Create a mock runner for testing."""
    return MockActionRunner()


@pytest.fixture
def abc_graph():
    """A (yes/no) branches to B on 'yes', otherwise straight to C."""
    return build_graph([
        {'key': 'A', 'kind': 'single_choice', 'options': YES_NO,
         'next': {'when_value': {'yes': 'B'}, 'default': 'C'}},
        {'key': 'B', 'kind': 'free_text', 'when': "A == 'yes'"},
        {'key': 'C', 'kind': 'free_text'},
    ])


@pytest.fixture
def method_graph():
    """Upload-or-questions branch like the PID and mortgage cards.

    start -> method -> (upload | q1..q6) -> finish
    """
    details = [
        {'key': f'q{i}', 'kind': 'free_text', 'when': "has_item == 'yes' and method == 'questions'"}
        for i in range(1, 7)
    ]
    details[-1]['next'] = 'finish'
    return build_graph([
        {'key': 'has_item', 'kind': 'single_choice', 'options': YES_NO,
         'next': {'when_value': {'no': 'finish'}, 'default': 'method'}},
        {'key': 'method', 'kind': 'single_choice', 'when': "has_item == 'yes'",
         'options': [{'value': 'upload', 'label': 'Upload'}, {'value': 'questions', 'label': 'Questions'}],
         'next': {'when_value': {'upload': 'upload', 'questions': 'q1'}, 'default': 'finish'}},
        {'key': 'upload', 'kind': 'file', 'when': "has_item == 'yes' and method == 'upload'", 'next': 'finish'},
        *details,
        {'key': 'finish', 'kind': 'single_choice', 'options': YES_NO},
    ])
