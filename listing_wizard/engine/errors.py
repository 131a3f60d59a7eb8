"""Error taxonomy for questionnaire flows."""

from typing import Optional


class WizardError(Exception):
    """Base class for questionnaire engine errors."""


class ValidationError(WizardError, ValueError):
    """The current answer is missing or fails a constraint.

    Local and recoverable: the caller shows the message and stays on the
    current question. Flow state is never advanced when this is raised.
    """

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class ConfigurationError(WizardError):
    """A question table, flow or expression is malformed.

    Raised while loading specs or building a graph, never during navigation.
    """


class StaleDraftError(WizardError, LookupError):
    """A saved draft no longer matches the question graph it was taken from."""


class PersistenceWarning(UserWarning):
    """A draft snapshot could not be saved or loaded.

    The flow keeps running in memory; only resume capability is lost.
    """
