"""
Node Studio - A procedural image node graph.
"""

__version__ = "0.1.0"
