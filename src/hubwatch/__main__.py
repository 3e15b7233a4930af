"""Entry point for ``python -m hubwatch``."""

import sys

from hubwatch.cli import main

if __name__ == "__main__":
    sys.exit(main())
