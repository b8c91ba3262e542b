"""
High-level use cases for the Legal Calendar API.

Routers call these services instead of touching the repository or the
stores directly; services turn storage failures into results.
"""
