"""Utilities module.

This module contains:
- Ignore file handling (.gitignore)
"""

from gitdesk.utils.ignore import IgnoreMatcher, IgnoreRule

__all__ = [
    'IgnoreMatcher', 'IgnoreRule',
]
