"""Run the interactive dashboard with ``python -m tailboard``."""
import sys

from .textual_app import main

if __name__ == "__main__":  # pragma: no cover - entry point
    sys.exit(main())
