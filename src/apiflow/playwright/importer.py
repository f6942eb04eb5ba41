"""
Flow import.

Turns pasted or loaded content into a Flow. A JSON array is read as a
structured step list; anything else is treated as Playwright script text
and recovered with the script parser.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Optional

from .models import Flow, Step, StepValidationError
from .script_parser import PlaywrightScriptParser
from ..common.utils import FlowLoader
from ..config import FlowConfig


logger = logging.getLogger("apiflow.importer")

SCRIPT_SUFFIXES = ('.ts', '.js', '.mjs', '.cjs')


class FlowImportError(ValueError):
    """Raised when content yields no usable flow."""


def steps_from_entries(entries: List[Any]) -> List[Step]:
    """
    Build steps from structured-list entries.

    Entries without 'method' and 'url', or with invalid values, are
    skipped with a warning.

    Args:
        entries: Decoded step list

    Returns:
        Valid steps in order
    """
    steps = []
    for index, entry in enumerate(entries, 1):
        if not FlowLoader.validate_entry(entry):
            logger.warning(f"Skipping entry {index}: 'method' and 'url' are required")
            continue
        try:
            steps.append(Step.from_dict(entry))
        except StepValidationError as e:
            logger.warning(f"Skipping entry {index}: {e}")

    if len(steps) < len(entries):
        logger.warning(f"Skipped {len(entries) - len(steps)} invalid step entries")

    return steps


def is_step_list(content: str) -> bool:
    """Whether content looks like a JSON step list rather than script text."""
    return content.lstrip().startswith('[')


def import_flow(content: str, config: Optional[FlowConfig] = None) -> Flow:
    """
    Import a flow from pasted content.

    Args:
        content: JSON step list or Playwright script text
        config: Settings (default base URL)

    Returns:
        Flow with at least one step

    Raises:
        FlowImportError: If the content is empty, malformed JSON, or
            contains no usable steps
    """
    config = config or FlowConfig()

    if not content or not content.strip():
        raise FlowImportError("Nothing to import: content is empty")

    if is_step_list(content):
        try:
            data = json.loads(content)
        except ValueError as e:
            raise FlowImportError(f"Invalid JSON step list: {e}") from e
        if not isinstance(data, list):
            raise FlowImportError("JSON step list must be an array")
        flow = Flow.from_steps(steps_from_entries(data), default_base_url=config.default_base_url)
    else:
        flow = PlaywrightScriptParser(config).parse(content)

    if not flow.steps:
        raise FlowImportError(
            "No API steps found. Expected test.step(...) blocks containing "
            "request.get/post/put/delete calls, or a JSON array of steps."
        )

    logger.info(f"Imported {len(flow.steps)} steps")
    return flow


def load_flow(file_path: str, config: Optional[FlowConfig] = None) -> Flow:
    """
    Load a flow from a file.

    Script files (.ts/.js) are recovered with the script parser; JSON and
    YAML files are read as structured flows.

    Args:
        file_path: Path to the flow file
        config: Settings (default base URL)

    Returns:
        Flow read from the file

    Raises:
        FileNotFoundError: If the file doesn't exist
        FlowImportError: If a script file contains no steps
        ValueError: If a structured file has an unexpected shape
    """
    config = config or FlowConfig()
    path = Path(file_path)

    if path.suffix.lower() in SCRIPT_SUFFIXES:
        if not path.exists():
            raise FileNotFoundError(f"Flow file not found: {path}")
        return import_flow(path.read_text(encoding='utf-8'), config)

    data = FlowLoader(file_path).load()
    if isinstance(data, list):
        return Flow.from_steps(steps_from_entries(data), default_base_url=config.default_base_url)

    return Flow.from_steps(
        steps_from_entries(data['steps']),
        base_url=data.get('baseUrl') or data.get('base_url'),
        default_base_url=config.default_base_url
    )
