"""
Shared utilities for the JWKS cache.

This package aggregates common building blocks consumed by the cache:

- config: Configuration via pydantic-settings
- logging: Structured logging with realm correlation
- errors: Canonical error types

Cross-cutting logic should live here to avoid import cycles. Do not import
from jwks_cache into shared/.
"""
