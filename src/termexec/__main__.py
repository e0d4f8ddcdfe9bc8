"""Entry point for running termexec as a module.

Usage:
    python -m termexec --timeout 30000 -- pytest -q
"""

import sys

from termexec.cli import main

if __name__ == "__main__":
    sys.exit(main())
