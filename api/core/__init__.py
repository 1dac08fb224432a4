"""
Core utilities shared across the API.

This package hosts:
- configuration helpers (env vars, storage paths, middleware chain mode)
- the transport-neutral request/response pair and the route table
- password hashing helpers

Repositories and routers depend on these primitives instead of importing
FastAPI directly; only api.app touches the web framework.
"""
