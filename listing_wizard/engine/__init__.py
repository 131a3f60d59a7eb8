"""Wizard engine - declarative question graphs, navigation and drafts."""

from .conditions import Condition
from .engine import WizardEngine
from .errors import WizardError, ValidationError, ConfigurationError, StaleDraftError, PersistenceWarning
from .graph import DONE, QuestionGraph, QuestionNode
from .loader import SpecLoader
from .navigator import Navigator
from .progress import Progress, progress, step_number, total_steps
from .runner import ActionRunner, RealActionRunner, MockActionRunner
from .schema import Question, QuestionKind, SectionSpec, Flow, DraftSnapshot
from .store import FieldStore

__all__ = [
    'Condition',
    'WizardEngine',
    'WizardError',
    'ValidationError',
    'ConfigurationError',
    'StaleDraftError',
    'PersistenceWarning',
    'DONE',
    'QuestionGraph',
    'QuestionNode',
    'SpecLoader',
    'Navigator',
    'Progress',
    'progress',
    'step_number',
    'total_steps',
    'ActionRunner',
    'RealActionRunner',
    'MockActionRunner',
    'Question',
    'QuestionKind',
    'SectionSpec',
    'Flow',
    'DraftSnapshot',
    'FieldStore',
]
