"""Entry point for ``python -m coursetree``."""

import sys

from coursetree.cli import main

if __name__ == "__main__":
    sys.exit(main())
