"""Core wizard engine - runs question graphs with DI."""

import importlib
import logging
import pkgutil
import re
import warnings
from pathlib import Path
from typing import Dict, Any, Optional, List

from pydantic import ValidationError as SchemaValidationError

from .errors import ConfigurationError, PersistenceWarning, StaleDraftError, ValidationError
from .graph import QuestionGraph, QuestionNode, is_blank
from .loader import SpecLoader
from .navigator import Navigator
from .runner import ActionRunner
from .schema import DraftSnapshot, Flow, QuestionKind, SectionSpec

logger = logging.getLogger(__name__)

BACK_COMMAND = "back"
EXIT_COMMAND = "exit"
SECTIONS_PACKAGE = "listing_wizard.sections"


class WizardEngine:
    """
    Executes questionnaire sections and flows with dependency injection.

    Key responsibilities:
    - Load section specs and flows
    - Drive a Navigator per section, in headless or interactive mode
    - Save a draft on every transition and resume from it
    - Inject runner for side effects
    """

    def __init__(self, runner: ActionRunner, base_path: Optional[Path] = None,
                 context: Optional[Dict[str, Any]] = None):
        """
        Initialize the wizard engine.

        Args:
            runner: ActionRunner implementation for side effects
            base_path: Directory holding sections/ and flows/
                (default: the installed listing_wizard package)
            context: Values from outside any flow, used by default_from
        """
        self.runner = runner
        self.loader = SpecLoader(base_path=base_path)
        self.context: Dict[str, Any] = dict(context or {})
        self.state: Dict[str, Dict[str, Any]] = {}
        self.validators: Dict[str, callable] = {}
        self.headless_mode = False
        self.headless_inputs: Dict[str, Any] = {}
        self._specs: Dict[str, SectionSpec] = {}
        self._graphs: Dict[str, QuestionGraph] = {}
        self._auto_register_sections()

    def register_validator(self, name: str, fn: callable) -> None:
        """Register a validator under ``name`` (e.g., 'account.validate_phone')."""
        self.validators[name] = fn

    def load_section(self, section: str) -> SectionSpec:
        if section not in self._specs:
            self._specs[section] = self.loader.load_section_spec(section)
        return self._specs[section]

    def build_graph(self, section: str) -> QuestionGraph:
        """Load a section and build its graph once per engine.

        Raises:
            FileNotFoundError: If the section has no spec
            ConfigurationError: If the spec or graph is malformed
        """
        if section not in self._graphs:
            self._graphs[section] = QuestionGraph.from_spec(self.load_section(section), self.validators)
        return self._graphs[section]

    def open_section(self, section: str, draft_id: Optional[str] = None, resume: bool = True) -> Navigator:
        """
        Create a navigator for a section, resumed from its draft if possible.

        The navigator saves a draft on every advance and retreat. A draft
        that cannot be resumed is discarded with a PersistenceWarning.
        """
        graph = self.build_graph(section)
        flow_id = draft_id or section
        navigator = Navigator(graph)

        snapshot = self._load_draft(flow_id) if resume else None
        resumed = False
        if snapshot is not None:
            try:
                navigator.resume(snapshot)
                resumed = True
                logger.info("Resumed %s at %s", flow_id, navigator.current_key)
            except StaleDraftError as e:
                self._discard_draft(flow_id, str(e))
        if not resumed:
            navigator.start()

        def save_on_transition(nav: Navigator, event: str):
            if event in ('advance', 'retreat'):
                self._save_draft(flow_id, nav.snapshot(flow_id), nav)

        navigator.subscribe(save_on_transition)
        return navigator

    def execute_section(self, section: str, headless_inputs: Optional[Dict] = None,
                        draft_id: Optional[str] = None, resume: bool = True) -> Optional[Dict[str, Any]]:
        """
        Run one section to completion.

        Args:
            section: Name of section to execute (e.g., 'title_holder')
            headless_inputs: Optional dict of pre-provided answers for testing
                            If None: INTERACTIVE mode (prompt user via runner)
                            If provided: HEADLESS mode (use dict values)
            draft_id: Key for the section draft (default: section name)
            resume: If False, ignore any saved draft

        Returns:
            Answers on the selected route, or None if the user exited early

        Raises:
            ValidationError: In headless mode, on the first rejected answer
        """
        self.headless_mode = (headless_inputs is not None)
        self.headless_inputs = headless_inputs or {}
        flow_id = draft_id or section

        spec = self.load_section(section)
        navigator = self.open_section(section, draft_id=flow_id, resume=resume)

        if not self.headless_mode:
            self.runner.display(spec.title)
            self.runner.display(spec.description)
            self.runner.display(
                f"Type '{BACK_COMMAND}' to return to the previous question "
                f"or '{EXIT_COMMAND}' to save and leave."
            )

        while not navigator.is_terminal():
            node = navigator.current()
            if self.headless_mode:
                self._answer_headless(navigator, node)
            elif self._answer_interactive(navigator, node) == EXIT_COMMAND:
                if self._save_draft(flow_id, navigator.snapshot(flow_id), navigator):
                    self.runner.display("Progress saved. Pick up where you left off next time.")
                logger.info("Left %s at %s", section, navigator.current_key)
                return None

        result = navigator.result()
        self.state[section] = result
        self._delete_draft(flow_id)
        logger.info("Section %s complete with %d answers", section, len(result))
        return result

    def execute_flow(self, flow_name: str, headless_inputs: Optional[Dict] = None,
                     resume: bool = True) -> Optional[Dict[str, Dict[str, Any]]]:
        """
        Execute a flow orchestrating multiple sections.

        Args:
            flow_name: Name of flow to execute (e.g., 'listing_creation')
            headless_inputs: Optional {section: {key: value}} answers for testing
                            If None: INTERACTIVE mode
            resume: If False, ignore saved drafts and start over

        Returns:
            Answers per completed section, or None if the user exited early
        """
        flow = self.loader.load_flow(flow_name)
        version = str(flow.version)
        completed: Dict[str, Dict[str, Any]] = {}

        snapshot = self._load_draft(flow_name) if resume else None
        if snapshot is not None:
            if snapshot.version != version:
                self._discard_draft(
                    flow_name, f"saved for version {snapshot.version}, flow is version {version}"
                )
            else:
                completed = dict(snapshot.answers)
                self.state.update(completed)
                logger.info("Resuming %s with %s already complete", flow_name, sorted(completed))

        ordering = flow.policy.get('ordering', 'topological') if flow.policy else 'topological'
        order = self._section_order(flow, reverse=(ordering == 'reverse-topological'))

        for section in order:
            if section in completed:
                logger.debug("Skipping completed section %s", section)
                continue

            self._save_draft(flow_name, DraftSnapshot(
                flow_id=flow_name, version=version, current_key=section, answers=completed,
            ))

            inputs = None
            if headless_inputs is not None:
                inputs = headless_inputs.get(section, {})
            result = self.execute_section(
                section, inputs, draft_id=f"{flow_name}.{section}", resume=resume
            )
            if result is None:
                self.runner.go_to(flow.on_exit)
                return None
            completed[section] = result

        self._delete_draft(flow_name)
        logger.info("Flow %s complete", flow_name)
        self.runner.go_to(flow.on_complete)
        return completed

    def _section_order(self, flow: Flow, reverse: bool = False) -> List[str]:
        """Order sections so each runs after everything it depends on."""
        names = [target.section for target in flow.targets]
        for target in flow.targets:
            missing = [dep for dep in target.depends_on if dep not in names]
            if missing:
                raise ConfigurationError(
                    f"Section '{target.section}' in flow '{flow.name}' depends on unknown "
                    f"section(s): {', '.join(missing)}"
                )

        executed: List[str] = []

        def can_execute(target):
            """Check if section dependencies are satisfied."""
            return all(dep in executed for dep in target.depends_on)

        while len(executed) < len(flow.targets):
            ready = next(
                (target for target in flow.targets
                 if target.section not in executed and can_execute(target)),
                None,
            )
            if ready is None:
                pending = [name for name in names if name not in executed]
                raise ConfigurationError(
                    f"Flow '{flow.name}' has circular dependencies between: {', '.join(pending)}"
                )
            executed.append(ready.section)

        return list(reversed(executed)) if reverse else executed

    def _answer_headless(self, navigator: Navigator, node: QuestionNode) -> None:
        # Display the prompt even in headless mode
        self.runner.display(self._interpolate_prompt(node.prompt, self._prompt_values(navigator)))

        value = self.headless_inputs.get(node.key)
        if is_blank(value) and node.key not in navigator.store:
            value = self._resolve_default(node, navigator)

        if is_blank(value):
            navigator.advance()
        else:
            navigator.advance(value)

    def _answer_interactive(self, navigator: Navigator, node: QuestionNode) -> str:
        """Prompt until the current question is answered.

        Returns:
            'exit' if the user asked to leave, otherwise the command handled
            ('back') or 'next'
        """
        while True:
            progress = navigator.progress()
            self.runner.display("")
            self.runner.display(f"[{progress.label}]")
            if node.question.help:
                self.runner.display(node.question.help)

            try:
                if node.kind == QuestionKind.GROUP:
                    value = self._prompt_group(navigator, node)
                else:
                    value = self._prompt_single(navigator, node)

                if value in (BACK_COMMAND, EXIT_COMMAND):
                    if value == BACK_COMMAND:
                        navigator.retreat()
                    return value

                if is_blank(value):
                    if node.required:
                        raise ValidationError("An answer is required", key=node.key)
                    navigator.advance()
                else:
                    navigator.advance(value)
                return "next"
            except ValidationError as e:
                # Show error and re-prompt
                self.runner.display(f"Error: {e}")

    def _prompt_single(self, navigator: Navigator, node: QuestionNode) -> Any:
        question = node.question
        if question.options:
            self.runner.display("")  # Blank line before options
            for i, option in enumerate(question.options, 1):
                self.runner.display(f"  {i}. {option.label}")
            if node.kind == QuestionKind.MULTI_CHOICE:
                self.runner.display("  (separate several choices with commas)")
            self.runner.display("")  # Blank line after options

        default = self._display_default(node, navigator)
        prompt = self._interpolate_prompt(node.prompt, self._prompt_values(navigator))
        raw = self.runner.get_input(prompt, default)
        text = raw.strip() if isinstance(raw, str) else raw

        if isinstance(text, str) and text.lower() in (BACK_COMMAND, EXIT_COMMAND):
            return text.lower()

        if node.kind == QuestionKind.SINGLE_CHOICE:
            return self._match_option(question.options, text)
        if node.kind == QuestionKind.MULTI_CHOICE:
            if is_blank(text):
                return []
            return [self._match_option(question.options, part.strip()) for part in text.split(',') if part.strip()]
        if node.kind == QuestionKind.FILE and not is_blank(text):
            if not self.runner.file_exists(text):
                raise ValidationError(f"File not found: {text}", key=node.key)
        return text

    def _prompt_group(self, navigator: Navigator, node: QuestionNode) -> Any:
        values = self._prompt_values(navigator)
        self.runner.display(self._interpolate_prompt(node.prompt, values))

        existing = navigator.store.get(node.key)
        if not isinstance(existing, dict):
            existing = self._resolve_default(node, navigator)
        existing = existing if isinstance(existing, dict) else {}

        answers = {}
        for field in node.question.fields:
            if field.options:
                for i, option in enumerate(field.options, 1):
                    self.runner.display(f"  {i}. {option.label}")
            label = field.label if field.required else f"{field.label} (optional)"
            raw = self.runner.get_input(self._interpolate_prompt(label, values), existing.get(field.key))
            text = raw.strip() if isinstance(raw, str) else raw
            if isinstance(text, str) and text.lower() in (BACK_COMMAND, EXIT_COMMAND):
                return text.lower()
            if field.options and not is_blank(text):
                text = self._match_option(field.options, text)
            if field.required and is_blank(text):
                raise ValidationError(f"{field.label} is required", key=node.key)
            answers[field.key] = text if text is not None else ''
        return answers

    @staticmethod
    def _match_option(options, text: Any) -> Any:
        """Map a typed number, value or label onto an option value."""
        if not isinstance(text, str) or not text:
            return text
        if text.isdigit() and 1 <= int(text) <= len(options):
            return options[int(text) - 1].value
        for option in options:
            if text.lower() in (option.value.lower(), option.label.lower()):
                return option.value
        return text

    def _display_default(self, node: QuestionNode, navigator: Navigator) -> Optional[str]:
        """Default shown in [brackets]: the current answer, else the declared default."""
        value = navigator.store.get(node.key)
        if is_blank(value):
            value = self._resolve_default(node, navigator)
        if is_blank(value):
            return None
        if isinstance(value, list):
            return ", ".join(str(item) for item in value)
        return str(value)

    def _resolve_default(self, node: QuestionNode, navigator: Navigator) -> Any:
        question = node.question
        default = question.default_value
        # Check for dynamic default from store, completed sections or context
        if question.default_from:
            found = self._lookup(question.default_from, navigator)
            if found is not None:
                default = found
        return default

    def _lookup(self, reference: str, navigator: Navigator) -> Any:
        if reference in navigator.store:
            return navigator.store.get(reference)
        if '.' in reference:
            section, key = reference.split('.', 1)
            if key in self.state.get(section, {}):
                return self.state[section][key]
        return self.context.get(reference)

    def _prompt_values(self, navigator: Navigator) -> Dict[str, Any]:
        values = dict(self.context)
        for section, answers in self.state.items():
            for key, value in answers.items():
                values[f"{section}.{key}"] = value
        values.update(navigator.store.snapshot())
        return values

    def _interpolate_prompt(self, prompt: str, state: dict) -> str:
        """Replace {key} placeholders with answer values.

        Args:
            prompt: Template string with {placeholders}
            state: Known answers and context values

        Returns:
            Interpolated string with values filled in

        Examples:
            >>> engine._interpolate_prompt("Owner {owner_1_name}", {'owner_1_name': 'Ann'})
            'Owner Ann'
        """
        def replacer(match):
            key = match.group(1)
            value = state.get(key, f'{{{key}}}')  # Keep {key} if not found
            return str(value)

        return re.sub(r'\{([^}]+)\}', replacer, prompt)

    def _load_draft(self, flow_id: str) -> Optional[DraftSnapshot]:
        try:
            data = self.runner.load_draft(flow_id)
        except Exception as e:
            self._warn(f"Could not load draft '{flow_id}': {e}")
            return None
        if data is None:
            return None
        try:
            return DraftSnapshot(**data)
        except (TypeError, SchemaValidationError) as e:
            self._discard_draft(flow_id, f"unreadable snapshot ({e})")
            return None

    def _save_draft(self, flow_id: str, snapshot: DraftSnapshot, navigator: Optional[Navigator] = None) -> bool:
        """Best-effort save; a failure warns and navigation carries on."""
        try:
            self.runner.save_draft(flow_id, snapshot.model_dump(mode='json'))
        except Exception as e:
            self._warn(f"Could not save draft '{flow_id}': {e}")
            return False
        if navigator is not None:
            navigator.store.mark_clean()
        return True

    def _delete_draft(self, flow_id: str) -> None:
        try:
            self.runner.delete_draft(flow_id)
        except Exception as e:
            self._warn(f"Could not delete draft '{flow_id}': {e}")

    def _discard_draft(self, flow_id: str, reason: str) -> None:
        self._warn(f"Discarding draft '{flow_id}': {reason}")
        self._delete_draft(flow_id)

    @staticmethod
    def _warn(message: str) -> None:
        logger.warning(message)
        warnings.warn(message, PersistenceWarning, stacklevel=3)

    def _auto_register_sections(self):
        """Register every function a section package exports as '<section>.<name>'."""
        package = importlib.import_module(SECTIONS_PACKAGE)
        for module_info in pkgutil.iter_modules(package.__path__):
            if not module_info.ispkg:
                continue
            module = importlib.import_module(f"{SECTIONS_PACKAGE}.{module_info.name}")
            for name in getattr(module, '__all__', []):
                self.validators.setdefault(f"{module_info.name}.{name}", getattr(module, name))
