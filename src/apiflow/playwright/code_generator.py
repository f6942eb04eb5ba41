"""
Playwright test script generator.

Renders an ordered list of API steps into a deterministic Playwright
test file. The output shape is the contract the script parser reads back.
"""

import json
import logging
from typing import List, Optional, Sequence, Union

from .models import Flow, Step
from .flow_validator import check_flow, validate_flow
from .literal_parser import find_matching_delimiter
from ..common.url_utils import URLHelper
from ..common.utils import safe_json_parse
from ..config import FlowConfig


logger = logging.getLogger("apiflow.generator")

STEP_INDENT = '  '
BODY_INDENT = '    '
OPTION_INDENT = '      '
HEADER_INDENT = '        '

# Continuation lines of an interpolated body sit one level below the option
TEMPLATE_BODY_INDENT = '        '

_UNPARSED = object()


def js_string(value: str) -> str:
    """Render a double-quoted JavaScript string literal."""
    return json.dumps(value, ensure_ascii=False)


def escape_template(text: str, escape_quotes: bool = False) -> str:
    """
    Escape text for use inside a JavaScript template literal.

    Backslashes and backticks are escaped (and double quotes when
    escape_quotes is set); ${...} interpolations are copied unchanged and
    a ${ that never closes is escaped as literal text.

    Args:
        text: Raw template content
        escape_quotes: Also escape double quotes

    Returns:
        Text to place between backticks
    """
    out = []
    i = 0
    length = len(text)

    while i < length:
        if text.startswith('${', i):
            close = find_matching_delimiter(text, i + 1)
            if close != -1:
                out.append(text[i:close + 1])
                i = close + 1
            else:
                # Unclosed, so it must not open an interpolation
                out.append('\\${')
                i += 2
            continue
        ch = text[i]
        if ch in '\\`' or (escape_quotes and ch == '"'):
            out.append('\\' + ch)
        else:
            out.append(ch)
        i += 1

    return ''.join(out)


def template_literal(text: str) -> str:
    return f"`{escape_template(text)}`"


def indent_continuation(text: str, indent: str) -> str:
    """Indent every line after the first."""
    lines = text.split('\n')
    return '\n'.join([lines[0]] + [indent + line for line in lines[1:]])


class PlaywrightCodeGenerator:
    """Render flows as Playwright API test scripts."""

    def __init__(self, config: Optional[FlowConfig] = None):
        """
        Initialize generator.

        Args:
            config: Output settings (framework entry, default base URL,
                test title, reference validation)
        """
        self.config = config or FlowConfig()

    def generate(self, steps: Union[Flow, Sequence[Step]], base_url: Optional[str] = None) -> str:
        """
        Generate a Playwright test script.

        Args:
            steps: Flow, or ordered list of steps
            base_url: Overrides the flow's base URL

        Returns:
            Script text, lines joined with a single newline

        Raises:
            FlowValidationError: If a step references a variable that is
                not saved by an earlier step and validation is enabled
        """
        flow = self._as_flow(steps, base_url)
        self._check(flow)

        resolved_base = URLHelper.normalize_base_url(flow.base_url) or self.config.default_base_url

        lines: List[str] = [
            f"import {{ test, expect }} from '{self.config.framework_entry}';",
            "",
            f"const baseUrl = {js_string(resolved_base)};",
            "",
            f"test({js_string(self.config.test_title)}, async ({{ request }}) => {{",
        ]

        for step in flow.steps:
            lines.extend(self.render_step(step))
            lines.append("")

        lines.append("});")

        logger.debug(f"Generated script for {len(flow.steps)} steps")
        return '\n'.join(lines)

    def _as_flow(self, steps: Union[Flow, Sequence[Step]], base_url: Optional[str]) -> Flow:
        if isinstance(steps, Flow):
            if base_url:
                return Flow(base_url=base_url, steps=steps.steps)
            return steps
        return Flow.from_steps(steps, base_url=base_url, default_base_url=self.config.default_base_url)

    def _check(self, flow: Flow):
        """Raise on scope errors when validation is on; log everything else."""
        issues = check_flow(flow) if self.config.validate_references else validate_flow(flow)
        for issue in issues:
            logger.warning(issue.message)

    def render_step(self, step: Step) -> List[str]:
        """
        Render one step as a test.step block.

        Args:
            step: Step to render

        Returns:
            Lines of the block, without the trailing separator line
        """
        name = step.save_response_as
        label = f"{step.method} and save as {name}" if name else f"{step.method} request"
        assignment = f"const {name} = " if name else ""

        lines = [f"{STEP_INDENT}{assignment}await test.step({js_string(label)}, async () => {{"]

        url_expr = template_literal(URLHelper.build_url_expression(step.url))
        options = self.render_options(step)
        lines.append(
            f"{BODY_INDENT}const response = await request.{step.method.lower()}({url_expr}{options});"
        )

        if step.expect_status_ok:
            lines.append(f"{BODY_INDENT}await expect(response).toBeOK();")

        lines.append(f"{BODY_INDENT}const data = await response.json();")

        if step.expect_array_not_empty:
            lines.append(f"{BODY_INDENT}expect(data.length).toBeGreaterThan(0);")

        if name:
            lines.append(f"{BODY_INDENT}return data;")

        lines.append(f"{STEP_INDENT}}});")
        return lines

    def render_options(self, step: Step) -> str:
        """Render the request options argument, or '' when there is none."""
        options = []

        if step.has_body:
            options.append(f"data: {self.render_body(step.request_body)}")

        if step.headers:
            options.append(f"headers: {self.render_headers(step.headers)}")

        if not options:
            return ''

        joined = f",\n{OPTION_INDENT}".join(options)
        return f", {{\n{OPTION_INDENT}{joined}\n{BODY_INDENT}}}"

    def render_body(self, body: str) -> str:
        """
        Render a request body as an option value.

        Bodies with ${...} references become template literals; valid
        JSON is pretty-printed; anything else is emitted verbatim.
        """
        body = body.strip()

        if '${' in body:
            escaped = escape_template(body, escape_quotes=True)
            return f"`{indent_continuation(escaped, TEMPLATE_BODY_INDENT)}`"

        parsed = safe_json_parse(body, default=_UNPARSED)
        if parsed is _UNPARSED:
            logger.debug("Request body is not valid JSON, emitting it verbatim")
            return body

        pretty = json.dumps(parsed, indent=2, ensure_ascii=False)
        return indent_continuation(pretty, OPTION_INDENT)

    def render_headers(self, headers: dict) -> str:
        entries = []
        for key, value in headers.items():
            value_expr = template_literal(value) if '${' in value else js_string(value)
            entries.append(f"{HEADER_INDENT}{js_string(key)}: {value_expr}")

        body = ',\n'.join(entries)
        return f"{{\n{body}\n{OPTION_INDENT}}}"


def generate_playwright_test(
    steps: Union[Flow, Sequence[Step]],
    base_url: Optional[str] = None,
    config: Optional[FlowConfig] = None
) -> str:
    """
    Convenience function to render steps as a Playwright test.

    Example:
        code = generate_playwright_test([
            Step(method='GET', url='/users', expect_status_ok=True)
        ])
    """
    return PlaywrightCodeGenerator(config).generate(steps, base_url=base_url)
