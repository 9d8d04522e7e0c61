"""
Core utilities shared across the Farwell API.

This package hosts configuration, logging setup, the error catalogue,
password hashing, the mailer, file storage, the TTL cache and the rate
limiter. Routers and services depend on these primitives instead of reading
os.environ or touching the filesystem directly.
"""
