"""Daily rate limiting adapters.

Production counts live in Redis so every worker shares the same quota; the
in-memory limiter implements the same interface for local runs and tests.
"""
