"""
Content platform test suite.

Tests are organized into:
- unit/: Unit tests for the stores, the entitlement engine and the gateway
- integration/: Integration tests for the HTTP API
"""
