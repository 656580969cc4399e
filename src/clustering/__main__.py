"""
Entry point for running cluster analysis as a module.

Usage:
    python3 -m clustering batch.json [--no-labels]
"""

import sys

from .analyze_batch import main

if __name__ == '__main__':
    sys.exit(main())
