"""
StudyStore tools.

This module provides:
- cli: reseed, dump, accounts, check and serve commands
"""

from .cli import StoreCLI, main

__all__ = ["StoreCLI", "main"]
