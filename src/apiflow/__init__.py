"""
apiflow - Playwright API flow builder

Converts between structured API-call flows and Playwright test scripts.
"""

from .config import FlowConfig
from .playwright import (
    Step,
    Flow,
    generate_playwright_test,
    parse_playwright_test,
    import_flow,
)

__all__ = [
    'FlowConfig',
    'Step',
    'Flow',
    'generate_playwright_test',
    'parse_playwright_test',
    'import_flow',
]

__version__ = '1.0.0'
