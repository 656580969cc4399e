"""
Entry point for running a batch search as a module.

Usage:
    python3 -m search "query text" batch.json
"""

import sys

from .query_batch import main

if __name__ == '__main__':
    sys.exit(main())
