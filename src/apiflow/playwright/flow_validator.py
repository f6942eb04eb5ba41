"""
Flow validation.

Checks the variable-scope rule of a flow (a step may only reference
variables saved by strictly earlier steps) and the field-level checks the
flow editor shows next to each step.
"""

import json
import re
from typing import Dict, List, Any, Optional, Set
from dataclasses import dataclass, asdict

from .models import Flow, Step
from ..common.url_utils import URLHelper


REFERENCE_PATTERN = re.compile(r'\$\{\s*([A-Za-z_$][\w$]*)')

# Always in scope in the generated script
BUILTIN_NAMES = {'baseUrl'}

# Names a saved variable may not take without breaking the generated script
RESERVED_NAMES = {
    'request', 'test', 'expect', 'baseUrl',
    'await', 'async', 'break', 'case', 'catch', 'class', 'const', 'continue',
    'debugger', 'default', 'delete', 'do', 'else', 'enum', 'export', 'extends',
    'false', 'finally', 'for', 'function', 'if', 'import', 'in', 'instanceof',
    'let', 'new', 'null', 'return', 'static', 'super', 'switch', 'this',
    'throw', 'true', 'try', 'typeof', 'undefined', 'var', 'void', 'while',
    'with', 'yield',
}

# Redeclared inside every step block, so a later step cannot read them
SHADOWED_NAMES = {'response', 'data'}

ERROR = 'error'
WARNING = 'warning'


class FlowValidationError(ValueError):
    """Raised when a flow breaks the variable-scope rule."""

    def __init__(self, issues: List['FlowIssue']):
        self.issues = issues
        summary = '; '.join(issue.message for issue in issues)
        super().__init__(f"Invalid flow: {summary}")


@dataclass
class FlowIssue:
    """One problem found in a flow."""
    step_index: int
    field: str
    kind: str
    message: str
    severity: str = ERROR

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def find_references(text: str) -> List[str]:
    """
    Find the root identifiers of ${...} references in text.

    Example:
        find_references("Bearer ${authToken.access_token}")  # ['authToken']
    """
    return REFERENCE_PATTERN.findall(text or '')


def saved_variables_before(flow: Flow, index: int) -> List[str]:
    """
    List the variables available to the step at index.

    Args:
        flow: Flow to inspect
        index: Position of the step

    Returns:
        Names saved by earlier steps, in flow order
    """
    return [
        step.save_response_as
        for step in flow.steps[:max(index, 0)]
        if step.save_response_as
    ]


def _step_fields(step: Step) -> Dict[str, str]:
    """Fields of a step that end up in the generated script."""
    values = {'url': step.url}
    for key, value in step.headers.items():
        values[f'headers.{key}'] = value
    if step.has_body:
        values['requestBody'] = step.request_body
    return values


def _check_reference(
    name: str,
    index: int,
    step: Step,
    saved_before: Set[str],
    saved_later: Set[str],
    field_name: str
) -> Optional[FlowIssue]:
    if name in BUILTIN_NAMES:
        return None

    if name in SHADOWED_NAMES and (name in saved_before or name in saved_later or name == step.save_response_as):
        kind = 'shadowed_reference'
        message = (
            f"Step {index + 1} references '{name}' in {field_name}, which the step's own "
            f"'const {name}' hides; save the response under another name"
        )
    elif name in saved_before:
        return None
    elif name == step.save_response_as:
        kind = 'self_reference'
        message = f"Step {index + 1} references its own variable '{name}' in {field_name}"
    elif name in saved_later:
        kind = 'forward_reference'
        message = f"Step {index + 1} references '{name}' in {field_name} before it is saved"
    else:
        kind = 'undefined_reference'
        message = f"Step {index + 1} references unknown variable '{name}' in {field_name}"

    return FlowIssue(step_index=index, field=field_name, kind=kind, message=message)


def validate_flow(flow: Flow) -> List[FlowIssue]:
    """
    Validate a flow.

    Errors break the generated script at run time (scope violations,
    duplicate or reserved variable names). Warnings mirror the editor's
    field checks and never block generation.

    Args:
        flow: Flow to validate

    Returns:
        List of FlowIssue, errors and warnings in step order
    """
    issues: List[FlowIssue] = []
    saved_before: Set[str] = set()

    for index, step in enumerate(flow.steps):
        saved_later = {
            later.save_response_as
            for later in flow.steps[index + 1:]
            if later.save_response_as
        }

        for field_name, value in _step_fields(step).items():
            for name in find_references(value):
                issue = _check_reference(name, index, step, saved_before, saved_later, field_name)
                if issue:
                    issues.append(issue)

        issues.extend(_field_warnings(index, step))

        name = step.save_response_as
        if name:
            if name in RESERVED_NAMES:
                issues.append(FlowIssue(
                    step_index=index,
                    field='saveResponseAs',
                    kind='reserved_variable',
                    message=f"Step {index + 1} cannot save its response as reserved name '{name}'"
                ))
            elif name in saved_before:
                issues.append(FlowIssue(
                    step_index=index,
                    field='saveResponseAs',
                    kind='duplicate_variable',
                    message=f"Step {index + 1} saves '{name}' which an earlier step already saved"
                ))
            saved_before.add(name)

    return issues


def _field_warnings(index: int, step: Step) -> List[FlowIssue]:
    warnings = []

    if not URLHelper.is_valid_url(step.url):
        warnings.append(FlowIssue(
            step_index=index,
            field='url',
            kind='invalid_url',
            message=f"Step {index + 1} has an invalid URL {step.url!r}",
            severity=WARNING
        ))

    body = step.request_body.strip()
    if body and not step.has_body:
        warnings.append(FlowIssue(
            step_index=index,
            field='requestBody',
            kind='ignored_body',
            message=f"Step {index + 1} is a {step.method} request; its body is not sent",
            severity=WARNING
        ))
    elif body and '${' not in body:
        try:
            json.loads(body)
        except ValueError:
            warnings.append(FlowIssue(
                step_index=index,
                field='requestBody',
                kind='invalid_body',
                message=f"Step {index + 1} has a request body that is not valid JSON",
                severity=WARNING
            ))

    return warnings


def errors_only(issues: List[FlowIssue]) -> List[FlowIssue]:
    return [issue for issue in issues if issue.severity == ERROR]


def check_flow(flow: Flow) -> List[FlowIssue]:
    """
    Validate a flow and raise on errors.

    Returns:
        Remaining warnings

    Raises:
        FlowValidationError: If any error-level issue was found
    """
    issues = validate_flow(flow)
    errors = errors_only(issues)
    if errors:
        raise FlowValidationError(errors)
    return [issue for issue in issues if issue.severity == WARNING]
