"""
PawMatch
========

Pet-care matching backend: provider search, availability calendars and the
booking lifecycle.
"""

__version__ = "0.1.0"
