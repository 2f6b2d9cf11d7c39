"""
ReplayDraw

Vector drawing engine whose scenes compile to compact replay programs.
"""

__version__ = "0.1.0"
