"""
Main entry point for running the package as a module.

Usage:
    python -m mediaworker run
    python -m mediaworker once
    python -m mediaworker ladder 1920 1080
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
