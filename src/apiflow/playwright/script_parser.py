"""
Playwright test script parser.

Recovers a flow from Playwright API test text, either generated by
PlaywrightCodeGenerator or written by hand in the same shape. This is
tolerant text mining in layers, not a JavaScript parser:

1. find_base_url        - the `const baseUrl = "..."` declaration
2. find_step_blocks     - every test.step(...) call and its block body
3. find_request_call    - method, URL and options block of the request
4. parse_headers_block  - header entries of the options block
5. parse_data_option    - request body of the options block
6. detect_save_name     - the variable the step's result is saved as

Each layer degrades on its own: a field that cannot be read is left
empty, and only a missing method or URL drops the whole step.
"""

import json
import logging
import re
from typing import Dict, Iterator, List, Optional, Tuple
from dataclasses import dataclass

from .models import Flow, Step, HttpMethod, BODY_METHODS, StepValidationError
from .literal_parser import (
    LiteralParseError,
    QUOTES,
    IDENTIFIER_RE,
    find_matching_delimiter,
    parse_literal,
    read_string,
    skip_trivia,
)
from ..common.url_utils import URLHelper
from ..config import FlowConfig


logger = logging.getLogger("apiflow.parser")

BASE_URL_RE = re.compile(r'\bconst\s+baseUrl\s*=\s*(?=["\'`])')

STEP_CALL_RE = re.compile(
    r'(?:\b(?:const|let|var)\s+(?P<var>[A-Za-z_$][\w$]*)\s*=\s*)?'
    r'(?:\bawait\s+)?\btest\.step\s*\(\s*(?=["\'`])'
)
STEP_CALLBACK_RE = re.compile(
    r'\s*,\s*async\s*(?:\(\s*\)\s*=>|function\s*[\w$]*\s*\(\s*\))\s*\{'
)

REQUEST_CALL_RE = re.compile(r'\brequest\.(\w+)\s*\(')
OPTIONS_START_RE = re.compile(r'\s*,\s*\{')

STATUS_OK_RE = re.compile(r'\bexpect\(\s*response\s*\)\s*\.toBeOK\(\s*\)')
ARRAY_NOT_EMPTY_RE = re.compile(r'\bexpect\(\s*data\.length\s*\)\s*\.toBeGreaterThan\(\s*0\s*\)')

SAVE_AS_RE = re.compile(r'\bsave as\s+([A-Za-z_$][\w$]*)')
RETURN_RE = re.compile(r'\breturn\s+[^\s;}]')

# Indentation the generator puts before continuation lines of a template body
TEMPLATE_BODY_DEDENT_RE = re.compile(r'^ {1,8}')

OPENERS = {'{': '}', '[': ']', '(': ')'}
CLOSERS = {'}', ']', ')'}


@dataclass
class StepBlock:
    """A test.step(...) call found in script text."""
    label: str
    body: str
    assigned_name: Optional[str] = None
    start: int = 0
    end: int = 0


@dataclass
class RequestCall:
    """The request.<method>(...) call inside a step block."""
    method: str
    url: str
    options: str = ''


def _walk(text: str) -> Iterator[Tuple[int, str, int]]:
    """
    Yield (position, character, depth) for code outside strings and comments.

    Depth counts enclosing braces, brackets and parentheses; an opening
    delimiter is reported at the depth outside it. A string literal is
    reported once, at its opening quote. After a quote or comment that
    never closes, every remaining character is reported as code.
    """
    depth = 0
    pos = 0
    length = len(text)
    plain = False

    while pos < length:
        ch = text[pos]
        if not plain and ch in QUOTES:
            try:
                _, end = read_string(text, pos)
            except LiteralParseError:
                plain = True
            else:
                yield pos, ch, depth
                pos = end
                continue
        if not plain and ch == '/' and text.startswith(('//', '/*'), pos):
            try:
                pos = skip_trivia(text, pos)
                continue
            except LiteralParseError:
                plain = True

        if ch in CLOSERS:
            depth -= 1
        yield pos, ch, depth
        if ch in OPENERS:
            depth += 1
        pos += 1


def _skip_code_trivia(text: str, pos: int) -> int:
    """skip_trivia that treats an unterminated comment as running to the end."""
    try:
        return skip_trivia(text, pos)
    except LiteralParseError:
        return len(text)


def extract_balanced_block(text: str, open_pos: int) -> Optional[Tuple[str, int]]:
    """
    Extract the text between a '{' and its matching '}'.

    Args:
        text: Source text
        open_pos: Index of the opening brace

    Returns:
        Tuple of (inner text, index of the closing brace), or None if the
        brace never closes
    """
    close = find_matching_delimiter(text, open_pos)
    if close == -1:
        return None
    return text[open_pos + 1:close], close


def split_entries(text: str, separators: str = ',\n') -> List[str]:
    """
    Split text on top-level separators, ignoring those inside strings,
    comments and nested delimiters.

    Returns:
        Non-empty stripped pieces
    """
    pieces = []
    start = 0
    for pos, ch, depth in _walk(text):
        if depth == 0 and ch in separators:
            pieces.append(text[start:pos])
            start = pos + 1
    pieces.append(text[start:])
    return [piece.strip() for piece in pieces if piece.strip()]


def find_option(options: str, name: str) -> Optional[int]:
    """
    Locate a top-level `name:` key in an options block.

    Args:
        options: Inner text of the options object
        name: Option key, e.g. 'headers'

    Returns:
        Index just past the colon, or None if the key is absent
    """
    pattern = re.compile(r'(?<![\w$])(["\']?)' + re.escape(name) + r'\1\s*:')
    top_level = {pos for pos, _, depth in _walk(options) if depth == 0}

    for match in pattern.finditer(options):
        if match.start() in top_level:
            return match.end()
    return None


def find_base_url(text: str, default: str) -> str:
    """
    Read the value of the first `const baseUrl = "..."` declaration.

    Args:
        text: Script text
        default: Value to use when there is no declaration

    Returns:
        Declared base URL or default
    """
    match = BASE_URL_RE.search(text)
    if not match:
        return default

    try:
        value, _ = read_string(text, match.end())
    except LiteralParseError:
        return default

    return value.strip() or default


def find_step_blocks(text: str) -> List[StepBlock]:
    """
    Find every test.step(...) call and capture its label and block body.

    The block body is bounded with a balanced-brace scan so nested
    braces in request options do not cut it short. Calls whose block
    never closes are skipped.

    Args:
        text: Script text

    Returns:
        StepBlock list in source order
    """
    blocks = []
    pos = 0

    while True:
        match = STEP_CALL_RE.search(text, pos)
        if not match:
            break

        try:
            label, after_label = read_string(text, match.end())
        except LiteralParseError:
            pos = match.end()
            continue

        callback = STEP_CALLBACK_RE.match(text, after_label)
        if not callback:
            logger.debug(f"test.step({label!r}) has no async callback, skipping")
            pos = after_label
            continue

        open_pos = callback.end() - 1
        extracted = extract_balanced_block(text, open_pos)
        if extracted is None:
            logger.debug(f"test.step({label!r}) block never closes, skipping")
            pos = callback.end()
            continue

        body, close = extracted
        blocks.append(StepBlock(
            label=label,
            body=body,
            assigned_name=match.group('var'),
            start=match.start(),
            end=close + 1
        ))
        pos = close + 1

    return blocks


def find_request_call(body: str) -> Optional[RequestCall]:
    """
    Find the request call in a step block.

    The URL is the first argument when it is a string literal, otherwise
    the first template literal after the call. The options block is the
    balanced {...} passed after the URL. Only the first request call of
    a block is read.

    Args:
        body: Step block body

    Returns:
        RequestCall, or None if no supported method and URL were found
    """
    match = REQUEST_CALL_RE.search(body)
    if not match:
        return None

    method = match.group(1).upper()
    if method not in HttpMethod.values():
        logger.debug(f"Unsupported request method request.{match.group(1)}()")
        return None

    arg_pos = _skip_code_trivia(body, match.end())
    url_pos = arg_pos if arg_pos < len(body) and body[arg_pos] in QUOTES else body.find('`', match.end())
    if url_pos == -1:
        return None

    try:
        url, url_end = read_string(body, url_pos)
    except LiteralParseError:
        return None
    if not url.strip():
        return None

    options = ''
    options_start = OPTIONS_START_RE.match(body, url_end)
    if options_start:
        extracted = extract_balanced_block(body, options_start.end() - 1)
        if extracted is not None:
            options = extracted[0]

    return RequestCall(method=method, url=url, options=options)


def _parse_header_entry(entry: str) -> Optional[Tuple[str, str]]:
    """Read one `"key": value` entry; None when it does not fit."""
    try:
        if entry[0] in ('"', "'"):
            key, pos = read_string(entry, 0)
        else:
            match = IDENTIFIER_RE.match(entry)
            if not match:
                return None
            key, pos = match.group(), match.end()

        pos = skip_trivia(entry, pos)
        if not entry.startswith(':', pos):
            return None
        pos = skip_trivia(entry, pos + 1)
        if pos >= len(entry) or entry[pos] not in QUOTES:
            return None

        value, pos = read_string(entry, pos)
        if skip_trivia(entry, pos) != len(entry):
            return None
    except LiteralParseError:
        return None

    return key, value


def parse_headers_block(options: str) -> Dict[str, str]:
    """
    Read the headers option of a request.

    The headers object is split into candidate entries on commas and
    newlines; each entry needs a quoted key and a quoted or template
    value. Entries that do not fit are skipped.

    Args:
        options: Inner text of the request options object

    Returns:
        Header mapping in source order (later duplicates win)
    """
    headers: Dict[str, str] = {}

    value_pos = find_option(options, 'headers')
    if value_pos is None:
        return headers

    open_pos = _skip_code_trivia(options, value_pos)
    if not options.startswith('{', open_pos):
        return headers

    extracted = extract_balanced_block(options, open_pos)
    if extracted is None:
        return headers

    for entry in split_entries(extracted[0]):
        parsed = _parse_header_entry(entry)
        if parsed is None:
            logger.debug(f"Skipping unreadable header entry: {entry!r}")
            continue
        key, value = parsed
        headers[key] = value

    return headers


def _dedent_template_body(text: str) -> str:
    lines = text.split('\n')
    return '\n'.join([lines[0]] + [TEMPLATE_BODY_DEDENT_RE.sub('', line) for line in lines[1:]])


def parse_data_option(options: str, method: str) -> str:
    """
    Read the data option of a POST/PUT request as body text.

    Object and array literals are parsed with the restricted literal
    parser and re-serialized as pretty-printed JSON; when they cannot be
    parsed the captured text is kept verbatim. Template literals (bodies
    with ${...} references) are decoded and kept as text.

    Args:
        options: Inner text of the request options object
        method: Upper-case HTTP method of the step

    Returns:
        Request body text, or '' when absent
    """
    if method not in BODY_METHODS:
        return ''

    value_pos = find_option(options, 'data')
    if value_pos is None:
        return ''

    start = _skip_code_trivia(options, value_pos)
    if start >= len(options):
        return ''
    ch = options[start]

    if ch in ('{', '['):
        close = find_matching_delimiter(options, start, ch, '}' if ch == '{' else ']')
        if close == -1:
            return ''
        literal_text = options[start:close + 1]
        try:
            value = parse_literal(literal_text)
        except LiteralParseError as e:
            logger.debug(f"Keeping request body verbatim: {e}")
            return literal_text
        return json.dumps(value, indent=2, ensure_ascii=False)

    if ch in QUOTES:
        try:
            value, _ = read_string(options, start)
        except LiteralParseError:
            return ''
        return _dedent_template_body(value) if ch == '`' else value

    # Some other expression (e.g. a variable); keep its source text
    pieces = split_entries(options[start:], separators=',')
    return pieces[0] if pieces else ''


def detect_save_name(label: str, body: str, assigned_name: Optional[str]) -> str:
    """
    Work out which variable a step's response is saved as.

    A "save as <name>" label wins; otherwise, when the block returns a
    value, the name the block's result is assigned to.

    Returns:
        Variable name, or '' when the response is not saved
    """
    match = SAVE_AS_RE.search(label)
    if match:
        return match.group(1)
    if assigned_name and RETURN_RE.search(body):
        return assigned_name
    return ''


class PlaywrightScriptParser:
    """Recover flows from Playwright API test scripts."""

    def __init__(self, config: Optional[FlowConfig] = None):
        self.config = config or FlowConfig()

    def parse(self, text: str) -> Flow:
        """
        Recover a flow from script text.

        Never raises for unrecognised input; text without any step
        blocks yields an empty flow.

        Args:
            text: Playwright test script

        Returns:
            Flow with the declared base URL and one step per usable block
        """
        text = text or ''
        base_url = find_base_url(text, self.config.default_base_url)

        steps = []
        blocks = find_step_blocks(text)
        for index, block in enumerate(blocks, 1):
            step = self.parse_step_block(block, base_url)
            if step is None:
                logger.debug(f"Dropped step block {index} ({block.label!r}): no request method and URL")
                continue
            logger.debug(f"Recovered step {index}: {step.method} {step.url}")
            steps.append(step)

        logger.debug(f"Found {len(blocks)} step blocks, recovered {len(steps)} steps")
        return Flow(base_url=base_url, steps=steps)

    def parse_step_block(self, block: StepBlock, base_url: str) -> Optional[Step]:
        """
        Build a Step from one step block.

        Args:
            block: Step block found in the script
            base_url: Base URL recorded on the step

        Returns:
            Step, or None when the block has no usable request call
        """
        call = find_request_call(block.body)
        if call is None:
            return None

        try:
            return Step(
                method=call.method,
                url=URLHelper.strip_base_url(call.url),
                expect_status_ok=bool(STATUS_OK_RE.search(block.body)),
                expect_array_not_empty=bool(ARRAY_NOT_EMPTY_RE.search(block.body)),
                save_response_as=detect_save_name(block.label, block.body, block.assigned_name),
                request_body=parse_data_option(call.options, call.method),
                headers=parse_headers_block(call.options),
                base_url=base_url
            )
        except StepValidationError as e:
            logger.warning(f"Dropped step {block.label!r}: {e}")
            return None


def parse_playwright_test(text: str, config: Optional[FlowConfig] = None) -> List[Step]:
    """
    Convenience function to recover the step list from a script.

    Example:
        steps = parse_playwright_test(Path('api.spec.ts').read_text())
    """
    return PlaywrightScriptParser(config).parse(text).steps
