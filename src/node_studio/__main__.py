"""
Entry point for running Node Studio as a module.

Usage:
    python -m node_studio [graph.json] [-o DIR]
"""

import sys

from node_studio.main import main

if __name__ == "__main__":
    sys.exit(main())
