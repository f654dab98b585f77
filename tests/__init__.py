"""
Surf Test Suite.

This package contains:
- unit/: Unit tests (no network, no event loop beyond pytest-asyncio)
- integration/: Runner and entry point tests against the in-memory provider
"""
