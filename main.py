#!/usr/bin/env python3
"""
Run the AutoMedia pipeline from a source checkout (without installing).
Same arguments as the `automedia` console script.
"""

import sys
from pathlib import Path

# Ensure src is on path when running from the project root
_SRC = Path(__file__).resolve().parent / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))


def main():
    from automedia.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
