"""
Step model for API flows.

A Step describes one HTTP call plus its assertions and variable binding.
A Flow is an ordered list of steps sharing one base URL.
"""

import json
import re
from enum import Enum
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field

from ..common.url_utils import DEFAULT_BASE_URL

IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_$][\w$]*$')


class StepValidationError(ValueError):
    """Raised when a step violates the model invariants."""


class HttpMethod(str, Enum):
    """HTTP methods a step may use."""
    GET = 'GET'
    POST = 'POST'
    PUT = 'PUT'
    DELETE = 'DELETE'

    @classmethod
    def values(cls) -> List[str]:
        return [m.value for m in cls]

    @classmethod
    def parse(cls, value: Any) -> 'HttpMethod':
        """Parse a method name case-insensitively."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise StepValidationError(
                f"Unsupported method {value!r}, expected one of {', '.join(cls.values())}"
            ) from None


BODY_METHODS = (HttpMethod.POST, HttpMethod.PUT)


def _pick(data: Dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


@dataclass
class Step:
    """One HTTP call in a flow."""
    method: str
    url: str
    expect_status_ok: bool = False
    expect_array_not_empty: bool = False
    save_response_as: str = ''
    request_body: str = ''
    headers: Dict[str, str] = field(default_factory=dict)
    base_url: Optional[str] = None

    def __post_init__(self):
        self.method = HttpMethod.parse(self.method).value

        if not isinstance(self.url, str):
            raise StepValidationError(f"url must be a string, got {type(self.url).__name__}")

        self.save_response_as = (self.save_response_as or '').strip()
        if self.save_response_as and not IDENTIFIER_PATTERN.match(self.save_response_as):
            raise StepValidationError(
                f"saveResponseAs {self.save_response_as!r} is not a valid identifier"
            )

        # YAML flow files may spell the body as a mapping
        if isinstance(self.request_body, (dict, list)):
            self.request_body = json.dumps(self.request_body, indent=2, ensure_ascii=False)
        self.request_body = self.request_body or ''
        if not isinstance(self.request_body, str):
            raise StepValidationError("requestBody must be a string")

        if not isinstance(self.headers or {}, dict):
            raise StepValidationError("headers must be a mapping of name to value")
        self.headers = {str(k): str(v) for k, v in (self.headers or {}).items()}

    @property
    def has_body(self) -> bool:
        """Whether a request body will be sent for this step."""
        return self.method in BODY_METHODS and bool(self.request_body.strip())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Step':
        """Create a Step from its structured-list encoding."""
        if not isinstance(data, dict):
            raise StepValidationError(f"Step must be an object, got {type(data).__name__}")

        missing = [key for key in ('method', 'url') if key not in data]
        if missing:
            raise StepValidationError(f"Step is missing required field(s): {', '.join(missing)}")

        return cls(
            method=data['method'],
            url=data['url'],
            expect_status_ok=bool(_pick(data, 'expectStatusOk', 'expect_status_ok', False)),
            expect_array_not_empty=bool(_pick(data, 'expectArrayNotEmpty', 'expect_array_not_empty', False)),
            save_response_as=_pick(data, 'saveResponseAs', 'save_response_as', '') or '',
            request_body=_pick(data, 'requestBody', 'request_body', '') or '',
            headers=_pick(data, 'headers', 'headers', {}) or {},
            base_url=_pick(data, 'baseUrl', 'base_url'),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase structured-list encoding."""
        data = {
            'method': self.method,
            'url': self.url,
            'expectStatusOk': self.expect_status_ok,
            'expectArrayNotEmpty': self.expect_array_not_empty,
            'saveResponseAs': self.save_response_as,
            'requestBody': self.request_body,
            'headers': dict(self.headers),
        }
        if self.base_url is not None:
            data['baseUrl'] = self.base_url
        return data


@dataclass
class Flow:
    """Ordered steps sharing one base URL."""
    base_url: str = DEFAULT_BASE_URL
    steps: List[Step] = field(default_factory=list)

    @classmethod
    def from_steps(
        cls,
        steps: List[Step],
        base_url: Optional[str] = None,
        default_base_url: str = DEFAULT_BASE_URL
    ) -> 'Flow':
        """
        Build a flow from a step list.

        The base URL is the explicit argument if given, else the first
        step's base URL, else the default.
        """
        steps = list(steps)
        if not base_url and steps and steps[0].base_url:
            base_url = steps[0].base_url
        return cls(base_url=base_url or default_base_url, steps=steps)

    @classmethod
    def from_dict(cls, data: Any, default_base_url: str = DEFAULT_BASE_URL) -> 'Flow':
        """
        Create a flow from a bare step list or a {"baseUrl", "steps"} mapping.
        """
        if isinstance(data, list):
            return cls.from_steps([Step.from_dict(s) for s in data], default_base_url=default_base_url)

        if isinstance(data, dict):
            steps = [Step.from_dict(s) for s in data.get('steps', [])]
            return cls.from_steps(
                steps,
                base_url=_pick(data, 'baseUrl', 'base_url'),
                default_base_url=default_base_url
            )

        raise StepValidationError(f"Expected a list or mapping, got {type(data).__name__}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'baseUrl': self.base_url,
            'steps': [step.to_dict() for step in self.steps],
        }

    def __len__(self) -> int:
        return len(self.steps)
