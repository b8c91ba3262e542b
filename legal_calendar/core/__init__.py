"""
Core utilities shared across the Legal Calendar API.

This package hosts configuration, logging setup, password hashing and the
text sanitizer. Repositories, services and routers depend on these primitives
instead of reading os.environ or configuring logging themselves.
"""
