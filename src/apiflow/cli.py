"""
apiflow command line

Generate Playwright API tests from flow files and recover flows from
Playwright test scripts.
"""

import sys
import argparse
import difflib
import logging
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import FlowConfig, config_template
from .common.utils import dump_flow
from .playwright import (
    PlaywrightCodeGenerator,
    FlowValidationError,
    import_flow,
    load_flow,
    validate_flow,
)


EPILOG = """
Examples:
  # Generate a test script from a flow file
  apiflow generate flow.json --output tests/api.spec.ts

  # Recover a flow from an existing script
  apiflow recover tests/api.spec.ts --format yaml

  # Check that a script survives recover + generate unchanged
  apiflow roundtrip tests/api.spec.ts --check

  # Serve the HTTP API for the flow editor
  apiflow serve --port 8080

  # Write a config template
  apiflow config-template > apiflow.yaml
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='apiflow',
        description='Convert between API step flows and Playwright test scripts',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG
    )

    parser.add_argument('--config', '-c', help='YAML configuration file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')
    parser.add_argument('--version', action='version', version=f'apiflow {__version__}')

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True

    generate = subparsers.add_parser('generate', help='Generate a Playwright script from a flow file')
    generate.add_argument('flow', help='Flow file (.json, .yaml) or script to regenerate')
    generate.add_argument('--output', '-o', help='Output file (default: stdout)')
    generate.add_argument('--base-url', help='Override the flow base URL')
    generate.add_argument(
        '--no-validate',
        action='store_true',
        help='Generate even if steps reference variables that are not saved earlier'
    )

    recover = subparsers.add_parser('recover', help='Recover a flow from a Playwright script')
    recover.add_argument('script', help='Playwright test script or JSON step list')
    recover.add_argument('--output', '-o', help='Output file (default: stdout)')
    recover.add_argument('--format', '-f', choices=['json', 'yaml'], default='json', help='Output format')

    roundtrip = subparsers.add_parser('roundtrip', help='Recover a script and generate it again')
    roundtrip.add_argument('script', help='Playwright test script')
    roundtrip.add_argument(
        '--check',
        action='store_true',
        help='Exit with status 1 if the regenerated script differs from the input'
    )

    validate = subparsers.add_parser('validate', help='Check variable references in a flow')
    validate.add_argument('flow', help='Flow file (.json, .yaml) or script')

    serve = subparsers.add_parser('serve', help='Run the HTTP service')
    serve.add_argument('--host', help='Host to bind to')
    serve.add_argument('--port', type=int, help='Port to bind to')

    subparsers.add_parser('config-template', help='Print a configuration template and exit')

    return parser


def _write_output(text: str, output: Optional[str]):
    if not output:
        print(text)
        return

    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text + '\n')
    print(f"✓ Wrote {path}", file=sys.stderr)


def cmd_generate(args, config: FlowConfig) -> int:
    if args.no_validate:
        config.validate_references = False

    flow = load_flow(args.flow, config)
    code = PlaywrightCodeGenerator(config).generate(flow, base_url=args.base_url)
    _write_output(code, args.output)
    print(f"✓ Generated {len(flow.steps)} steps", file=sys.stderr)
    return 0


def cmd_recover(args, config: FlowConfig) -> int:
    path = Path(args.script)
    if not path.exists():
        print(f"Error: Script file not found: {path}", file=sys.stderr)
        return 1

    flow = import_flow(path.read_text(encoding='utf-8'), config)
    _write_output(dump_flow(flow.to_dict(), args.format).rstrip('\n'), args.output)
    print(f"✓ Recovered {len(flow.steps)} steps", file=sys.stderr)
    return 0


def cmd_roundtrip(args, config: FlowConfig) -> int:
    path = Path(args.script)
    if not path.exists():
        print(f"Error: Script file not found: {path}", file=sys.stderr)
        return 1

    original = path.read_text(encoding='utf-8').rstrip('\n')
    flow = import_flow(original, config)
    regenerated = PlaywrightCodeGenerator(config).generate(flow)

    if not args.check:
        print(regenerated)
        return 0

    if regenerated == original:
        print(f"✓ {path} is stable under recover + generate ({len(flow.steps)} steps)")
        return 0

    diff = difflib.unified_diff(
        original.splitlines(),
        regenerated.splitlines(),
        fromfile=str(path),
        tofile=f"{path} (regenerated)",
        lineterm=''
    )
    print('\n'.join(diff))
    print(f"\n❌ {path} changes under recover + generate", file=sys.stderr)
    return 1


def cmd_validate(args, config: FlowConfig) -> int:
    flow = load_flow(args.flow, config)
    issues = validate_flow(flow)

    if not issues:
        print(f"✓ {len(flow.steps)} steps, no issues")
        return 0

    for issue in issues:
        marker = '❌' if issue.severity == 'error' else '⚠️ '
        print(f"{marker} [{issue.kind}] {issue.message}")

    return 1 if any(issue.severity == 'error' for issue in issues) else 0


def cmd_serve(args, config: FlowConfig) -> int:
    from .server import FlowServer

    FlowServer(config).start(host=args.host, port=args.port)
    return 0


COMMANDS = {
    'generate': cmd_generate,
    'recover': cmd_recover,
    'roundtrip': cmd_roundtrip,
    'validate': cmd_validate,
    'serve': cmd_serve,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s'
    )

    if args.command == 'config-template':
        print(config_template(), end='')
        return 0

    try:
        config = FlowConfig.from_yaml(args.config) if args.config else FlowConfig()
        return COMMANDS[args.command](args, config)

    except FlowValidationError as e:
        print("Error: flow has invalid variable references:", file=sys.stderr)
        for issue in e.issues:
            print(f"  - {issue.message}", file=sys.stderr)
        return 1

    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130

    except Exception as e:
        print(f"\n❌ Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
