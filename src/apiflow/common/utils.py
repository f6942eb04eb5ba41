"""
apiflow Common Utilities

Shared helpers for reading flow files and tolerant JSON handling.
"""

import json
from pathlib import Path
from typing import List, Dict, Any, Union

import yaml


YAML_SUFFIXES = ('.yaml', '.yml')


def safe_json_parse(json_string: str, default: Any = None) -> Any:
    """
    Safely parse JSON string with error handling.

    Args:
        json_string: JSON string to parse
        default: Default value to return if parsing fails

    Returns:
        Parsed JSON object, or default if parsing fails

    Example:
        body = safe_json_parse(step.request_body, default={})
    """
    if not json_string:
        return default

    try:
        return json.loads(json_string)
    except (json.JSONDecodeError, TypeError, ValueError):
        return default


class FlowLoader:
    """
    Loader for structured flow files.

    Handles the encodings the flow editor saves:
    - Format 1: [...]                                (bare step list)
    - Format 2: {"baseUrl": "...", "steps": [...]}   (wrapped flow)

    Files ending in .yaml/.yml are read with PyYAML, everything else as
    JSON. Entries are returned as plain dictionaries; building Step
    objects is left to the caller.

    Example:
        loader = FlowLoader("flow.json")
        data = loader.load()
    """

    def __init__(self, file_path: str):
        """
        Initialize flow loader.

        Args:
            file_path: Path to a JSON or YAML flow file
        """
        self.file_path = Path(file_path)

    def load(self) -> Union[List[Dict[str, Any]], Dict[str, Any]]:
        """
        Load a flow from disk.

        Returns:
            Step list, or a mapping with a 'steps' list

        Raises:
            FileNotFoundError: If the flow file doesn't exist
            ValueError: If the content is not a recognised flow shape
        """
        if not self.file_path.exists():
            raise FileNotFoundError(f"Flow file not found: {self.file_path}")

        with open(self.file_path, 'r', encoding='utf-8') as f:
            if self.file_path.suffix.lower() in YAML_SUFFIXES:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)

        if isinstance(data, list):
            return data

        if isinstance(data, dict):
            if 'steps' in data and isinstance(data['steps'], list):
                return data
            raise ValueError(
                f"Unexpected flow format in {self.file_path}. "
                f"Expected a list of steps or a mapping with a 'steps' list. "
                f"Found keys: {list(data.keys())}"
            )

        raise ValueError(
            f"Unexpected flow format in {self.file_path}. "
            f"Expected list or mapping, got {type(data).__name__}"
        )

    @staticmethod
    def validate_entry(entry: Any) -> bool:
        """
        Check that a step entry has the fields every step needs.

        Args:
            entry: One element of a step list

        Returns:
            True if the entry is a mapping with 'method' and 'url'
        """
        required_fields = ['method', 'url']
        return isinstance(entry, dict) and all(f in entry for f in required_fields)


def dump_flow(data: Any, fmt: str = 'json') -> str:
    """
    Serialize a flow mapping or step list.

    Args:
        data: Output of Flow.to_dict() or a step list
        fmt: 'json' or 'yaml'

    Returns:
        Serialized text
    """
    if fmt == 'yaml':
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    if fmt == 'json':
        return json.dumps(data, indent=2, ensure_ascii=False)
    raise ValueError(f"Unsupported output format: {fmt}")
