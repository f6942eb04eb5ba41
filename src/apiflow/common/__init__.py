"""
apiflow Common Utilities

Shared utilities and helpers used across apiflow modules.
"""

from .utils import FlowLoader, safe_json_parse, dump_flow
from .url_utils import URLHelper, DEFAULT_BASE_URL, BASE_URL_PLACEHOLDER

__all__ = [
    'FlowLoader',
    'safe_json_parse',
    'dump_flow',
    'URLHelper',
    'DEFAULT_BASE_URL',
    'BASE_URL_PLACEHOLDER'
]
