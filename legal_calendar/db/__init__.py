"""Database helpers (declarative base, engine/session factories, schema tools)."""

from .session import Base, make_engine, make_sessionmaker, session_scope
from . import models  # noqa: F401  # ensure models are imported for metadata

__all__ = ["Base", "make_engine", "make_sessionmaker", "session_scope"]
