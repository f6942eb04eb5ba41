#!/usr/bin/env python3
"""
apiflow - Playwright API flow builder

This is a convenience wrapper that calls the packaged command line.
The actual implementation is in src/apiflow/cli.py

Usage:
    python apiflow-cli.py generate flow.json --output tests/api.spec.ts

For more information, see README.md
"""

import sys
from pathlib import Path

# Add src to the path so the wrapper runs from a source checkout
sys.path.insert(0, str(Path(__file__).parent / "src"))

from apiflow.cli import main

if __name__ == '__main__':
    sys.exit(main())
