"""ActionRunner interface - all side effects go here."""

import copy
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_DRAFTS_DIR = ".drafts"


class ActionRunner(ABC):
    """Interface for executing side effects.

    Persistence, view navigation and presentation are the only things a
    questionnaire does to the outside world; each has a method here.
    """

    @abstractmethod
    def save_draft(self, flow_id: str, snapshot: Dict[str, Any]) -> None:
        """Persist a draft snapshot, replacing any earlier one for ``flow_id``."""
        pass

    @abstractmethod
    def load_draft(self, flow_id: str) -> Optional[Dict[str, Any]]:
        """Return the saved snapshot for ``flow_id``, or None if there is none."""
        pass

    @abstractmethod
    def delete_draft(self, flow_id: str) -> None:
        """Forget the draft for ``flow_id`` (no error if missing)."""
        pass

    @abstractmethod
    def go_to(self, view: str) -> None:
        """Switch the application to another view (e.g., 'listings')."""
        pass

    @abstractmethod
    def file_exists(self, path: str) -> bool:
        """Check if file exists at given path."""
        pass

    @abstractmethod
    def display(self, message: str) -> None:
        """Display a message to the user.

        Args:
            message: Text to display (may contain newlines)
        """
        pass

    @abstractmethod
    def get_input(self, prompt: str, default: str = None) -> str:
        """Get input from user.

        Args:
            prompt: Question to ask user
            default: Default value if user presses Enter (shown in [brackets])

        Returns:
            User's input string (or default if empty)
        """
        pass


class RealActionRunner(ActionRunner):
    """Real implementation - drafts on disk, terminal I/O."""

    def __init__(self, drafts_dir: Optional[str] = None, verbose: bool = False):
        """Initialize runner.

        Args:
            drafts_dir: Directory for draft files (default:
                $LISTING_WIZARD_DRAFTS_DIR or .drafts)
            verbose: If True, report draft activity on screen
        """
        self.drafts_dir = Path(drafts_dir or os.environ.get('LISTING_WIZARD_DRAFTS_DIR', DEFAULT_DRAFTS_DIR))
        self.verbose = verbose
        if os.environ.get('LISTING_WIZARD_VERBOSE'):
            self.verbose = True
        self.current_view: Optional[str] = None

    def _draft_path(self, flow_id: str) -> Path:
        return self.drafts_dir / f"draft_{flow_id}.yaml"

    def save_draft(self, flow_id: str, snapshot: Dict[str, Any]) -> None:
        path = self._draft_path(flow_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            yaml.safe_dump(snapshot, f, sort_keys=False)
        if self.verbose:
            print(f"[VERBOSE] Draft saved: {path}")

    def load_draft(self, flow_id: str) -> Optional[Dict[str, Any]]:
        path = self._draft_path(flow_id)
        if not path.exists():
            return None
        with open(path, 'r') as f:
            return yaml.safe_load(f)

    def delete_draft(self, flow_id: str) -> None:
        path = self._draft_path(flow_id)
        if path.exists():
            path.unlink()
            if self.verbose:
                print(f"[VERBOSE] Draft removed: {path}")

    def go_to(self, view: str) -> None:
        logger.info("Navigating to %s", view)
        self.current_view = view

    def file_exists(self, path: str) -> bool:
        return os.path.exists(path)

    def display(self, message: str) -> None:
        """Print message to stdout."""
        print(message)

    def get_input(self, prompt: str, default: str = None) -> str:
        """Read from stdin with optional default."""
        if default is not None and default != '':
            response = input(f"{prompt} [{default}]: ").strip()
            print()  # Add newline after user input
            return response if response else str(default)

        response = input(f"{prompt}: ").strip()
        print()  # Add newline after user input
        return response


class MockActionRunner(ActionRunner):
    """Mock for testing - records calls.

    ``responses`` may hold an exception instance under 'save_draft',
    'load_draft' or 'delete_draft' to simulate a failing draft store, and a
    ``{path: bool}`` dict under 'file_exists'.
    """

    def __init__(self):
        self.calls = []
        self.responses = {}
        self.input_queue = []  # Pre-scripted user inputs for testing
        self.drafts: Dict[str, Dict[str, Any]] = {}
        self.current_view: Optional[str] = None

    def _maybe_fail(self, action: str) -> None:
        failure = self.responses.get(action)
        if isinstance(failure, Exception):
            raise failure

    def save_draft(self, flow_id: str, snapshot: Dict[str, Any]) -> None:
        self.calls.append(('save_draft', flow_id, snapshot))
        self._maybe_fail('save_draft')
        self.drafts[flow_id] = copy.deepcopy(snapshot)

    def load_draft(self, flow_id: str) -> Optional[Dict[str, Any]]:
        self.calls.append(('load_draft', flow_id))
        self._maybe_fail('load_draft')
        draft = self.drafts.get(flow_id)
        return copy.deepcopy(draft) if draft is not None else None

    def delete_draft(self, flow_id: str) -> None:
        self.calls.append(('delete_draft', flow_id))
        self._maybe_fail('delete_draft')
        self.drafts.pop(flow_id, None)

    def go_to(self, view: str) -> None:
        self.calls.append(('go_to', view))
        self.current_view = view

    def file_exists(self, path: str) -> bool:
        self.calls.append(('file_exists', path))
        return self.responses.get('file_exists', {}).get(path, False)

    def display(self, message: str) -> None:
        """Capture display call for test verification."""
        self.calls.append(('display', message))

    def get_input(self, prompt: str, default: str = None) -> str:
        """Return next value from input_queue."""
        self.calls.append(('get_input', prompt, default))

        # Pop next scripted response
        if self.input_queue:
            response = self.input_queue.pop(0)
            # Match RealActionRunner: apply default if response is empty
            return response if response else (default if default else '')

        # Fall back to default or empty string
        return default if default else ''

    def displayed(self) -> str:
        """All displayed text joined by newlines."""
        return "\n".join(call[1] for call in self.calls if call[0] == 'display')
