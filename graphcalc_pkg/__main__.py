"""Main entry point for running graphcalc_pkg as a module.

This allows running Graphcalc with:
    python -m graphcalc_pkg
    python -m graphcalc_pkg --health-check
    python -m graphcalc_pkg --derivative "x^2" --at 1
"""

from __future__ import annotations

import sys

from .cli import main_entry

if __name__ == "__main__":
    sys.exit(main_entry())
