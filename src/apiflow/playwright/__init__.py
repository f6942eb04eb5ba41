"""
Playwright API flow transcoder.

Generates Playwright API test scripts from step lists and recovers step
lists from Playwright test scripts.
"""

from .models import Step, Flow, HttpMethod, StepValidationError
from .code_generator import PlaywrightCodeGenerator, generate_playwright_test
from .script_parser import PlaywrightScriptParser, parse_playwright_test
from .flow_validator import FlowIssue, FlowValidationError, validate_flow, saved_variables_before
from .literal_parser import LiteralParseError, parse_literal
from .importer import FlowImportError, import_flow, load_flow

__all__ = [
    'Step',
    'Flow',
    'HttpMethod',
    'StepValidationError',
    'PlaywrightCodeGenerator',
    'generate_playwright_test',
    'PlaywrightScriptParser',
    'parse_playwright_test',
    'FlowIssue',
    'FlowValidationError',
    'validate_flow',
    'saved_variables_before',
    'LiteralParseError',
    'parse_literal',
    'FlowImportError',
    'import_flow',
    'load_flow',
]
