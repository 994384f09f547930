"""
Survey cross-tabulation report engine.
"""

__version__ = "0.1.0"
