"""
mazenav: drive an agent through a maze revealed one cell at a time.

Keep the top-level package import-light; the public surface lives in `mazenav.maze`.
"""

__version__ = "0.1.0"
