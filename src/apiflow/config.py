"""
apiflow Configuration

YAML-backed settings for script generation, recovery and the HTTP service.
"""

from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Dict, Any

import yaml

from .common.url_utils import DEFAULT_BASE_URL


@dataclass
class FlowConfig:
    """Configuration for generating and recovering flow scripts."""

    # Script output
    framework_entry: str = "@playwright/test"
    default_base_url: str = DEFAULT_BASE_URL
    test_title: str = "Generated API test"

    # Reject flows whose ${var} references break the step ordering rule
    validate_references: bool = True

    # Service
    log_level: str = "info"
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FlowConfig':
        """Create config from a dictionary, rejecting unknown keys."""
        data = data or {}
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration key(s): {', '.join(unknown)}")

        config = cls(**data)
        config.port = int(config.port)
        config.validate_references = bool(config.validate_references)
        return config

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'FlowConfig':
        """Load config from a YAML file."""
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")

        return cls.from_dict(data or {})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def config_template() -> str:
    """
    Render a YAML config template with the default values.

    Returns:
        YAML text suitable for apiflow.yaml
    """
    header = (
        "# apiflow configuration\n"
        "#\n"
        "# framework_entry: module the generated script imports test/expect from\n"
        "# default_base_url: used when a flow does not set its own base URL\n"
        "# validate_references: reject ${var} references to later or unknown steps\n"
    )
    return header + yaml.safe_dump(FlowConfig().to_dict(), sort_keys=False)
