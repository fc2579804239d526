#!/usr/bin/env python3
"""
Document Architect - run the CLI from a source checkout.

Usage:
    python main.py generate --config project.json
    python main.py validate --config project.json
    python main.py plan docs/stories/<project>-stories-<date>.md
"""

import sys

from docarchitect.cli import main


if __name__ == "__main__":
    sys.exit(main())
