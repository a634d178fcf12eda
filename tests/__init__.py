"""
StudyStore Test Suite.

This package contains:
- unit/: Unit tests (in-memory storage, no I/O)
- integration/: Integration tests (client facade, SQLite, HTTP gateway, CLI)
"""
