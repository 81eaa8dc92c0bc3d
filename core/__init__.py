"""Core (UI-agnostic) visa admin logic.

This package contains:
- settings and error types
- the remote catalog client (httpx)
- record <-> form normalization and validation
- selection cascades and the mutation coordinator
- alert channel, table shaping (pandas) and local mock data
"""
