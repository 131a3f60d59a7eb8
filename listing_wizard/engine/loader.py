"""SpecLoader - loads and validates YAML question tables and flows."""

import copy
import logging
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import ValidationError as SchemaValidationError

from .errors import ConfigurationError
from .graph import DONE
from .schema import SectionSpec, Flow

logger = logging.getLogger(__name__)

AFTER_TOKEN = "{after}"


class SpecLoader:
    """
    Loads section specifications and flows from YAML files.

    Validates structure using Pydantic models and expands ``repeat`` blocks
    into concrete questions before validation.
    """

    def __init__(self, base_path: Optional[Path] = None):
        """
        Initialize loader.

        Args:
            base_path: Directory holding ``sections/`` and ``flows/``
                (default: the installed listing_wizard package)
        """
        if base_path is None:
            base_path = Path(__file__).resolve().parent.parent
        self.base_path = Path(base_path)

    def load_section_spec(self, section_name: str) -> SectionSpec:
        """
        Load a section specification from YAML.

        Args:
            section_name: Name of section (e.g., 'financial_info')

        Returns:
            Validated SectionSpec instance

        Raises:
            FileNotFoundError: If spec file doesn't exist
            ConfigurationError: If YAML is malformed or doesn't match schema
        """
        spec_path = self.base_path / "sections" / section_name / "spec.yaml"

        if not spec_path.exists():
            raise FileNotFoundError(f"Section spec not found: {spec_path}")

        data = self._read_yaml(spec_path)
        if isinstance(data.get('questions'), list):
            data['questions'] = expand_repeats(data['questions'])

        return self._build(SectionSpec, data, spec_path)

    def load_flow(self, flow_name: str) -> Flow:
        """
        Load a flow definition from YAML.

        Args:
            flow_name: Name of flow (e.g., 'listing_creation')

        Returns:
            Validated Flow instance

        Raises:
            FileNotFoundError: If flow file doesn't exist
            ConfigurationError: If YAML is malformed or doesn't match schema
        """
        flow_path = self.base_path / "flows" / f"{flow_name}.yaml"

        if not flow_path.exists():
            raise FileNotFoundError(f"Flow not found: {flow_path}")

        return self._build(Flow, self._read_yaml(flow_path), flow_path)

    def list_sections(self) -> List[str]:
        """Names of every section directory that has a spec.yaml."""
        sections_dir = self.base_path / "sections"
        if not sections_dir.exists():
            return []
        return sorted(
            path.name for path in sections_dir.iterdir()
            if path.is_dir() and (path / "spec.yaml").exists()
        )

    def list_flows(self) -> List[str]:
        flows_dir = self.base_path / "flows"
        if not flows_dir.exists():
            return []
        return sorted(path.stem for path in flows_dir.glob("*.yaml"))

    @staticmethod
    def _read_yaml(path: Path) -> Dict[str, Any]:
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Expected a mapping at the top of {path}")
        return data

    @staticmethod
    def _build(model, data: Dict[str, Any], path: Path):
        try:
            return model(**data)
        except SchemaValidationError as e:
            raise ConfigurationError(f"Invalid {model.__name__} in {path}: {e}") from e


def expand_repeats(items: List[Any]) -> List[Dict[str, Any]]:
    """
    Expand ``repeat`` blocks into concrete question dicts.

    A block looks like::

        - repeat:
            count: 4
            index: n
            when: "int(number_of_mortgages) >= {n}"
          questions:
            - key: mortgage_{n}_lender
              ...
              next: "{after}"

    Each iteration substitutes the index into every string of every question,
    and-s the block's ``when`` into each question's own ``when`` and resolves
    ``{after}`` in ``next`` to the first key of the next iteration, or to
    whatever follows the block (``done`` at the end of the table).

    Plain question dicts pass through unchanged.
    """
    iterations: List[List[Dict[str, Any]]] = []
    for item in items:
        if isinstance(item, dict) and 'repeat' in item:
            iterations.extend(_expand_block(item))
        else:
            iterations.append([item])

    expanded = []
    for position, iteration in enumerate(iterations):
        following = DONE
        if position + 1 < len(iterations):
            first = iterations[position + 1][0]
            following = first.get('key', DONE) if isinstance(first, dict) else DONE
        for question in iteration:
            if isinstance(question, dict) and 'next' in question:
                question['next'] = _substitute(question['next'], AFTER_TOKEN, following)
            expanded.append(question)
    return expanded


def _expand_block(block: Dict[str, Any]) -> List[List[Dict[str, Any]]]:
    unknown = set(block) - {'repeat', 'questions'}
    if unknown:
        raise ConfigurationError(f"Unsupported repeat block entries: {', '.join(sorted(unknown))}")

    repeat = block['repeat']
    templates = block.get('questions')
    if not isinstance(repeat, dict) or 'count' not in repeat:
        raise ConfigurationError("A repeat block needs a 'count'")
    if not templates or not isinstance(templates, list):
        raise ConfigurationError("A repeat block needs a non-empty 'questions' list")

    try:
        count = int(repeat['count'])
        start = int(repeat.get('start', 1))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid repeat count/start: {e}") from e
    if count < 1:
        raise ConfigurationError("A repeat block count must be at least 1")

    token = "{" + str(repeat.get('index', 'n')) + "}"
    guard = repeat.get('when')

    iterations = []
    for number in range(start, start + count):
        iteration = []
        for template in templates:
            if not isinstance(template, dict):
                raise ConfigurationError(f"Repeat block questions must be mappings, got {template!r}")
            if 'repeat' in template:
                raise ConfigurationError("Repeat blocks cannot be nested")
            question = _substitute(copy.deepcopy(template), token, str(number))
            if guard:
                condition = guard.replace(token, str(number))
                own = question.get('when')
                question['when'] = f"({condition}) and ({own})" if own else condition
            iteration.append(question)
        iterations.append(iteration)

    logger.debug("Expanded repeat block into %d iterations of %d questions", count, len(templates))
    return iterations


def _substitute(value: Any, token: str, replacement: str) -> Any:
    if isinstance(value, str):
        return value.replace(token, replacement)
    if isinstance(value, list):
        return [_substitute(item, token, replacement) for item in value]
    if isinstance(value, dict):
        return {
            _substitute(key, token, replacement): _substitute(item, token, replacement)
            for key, item in value.items()
        }
    return value
