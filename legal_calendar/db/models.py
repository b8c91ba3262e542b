"""SQLAlchemy models: the current shape of every collection.

These declarations are the single source of truth for schema shapes. The
JSON store, the schema inspector and the repository all derive field sets,
types, defaults and the dependency graph from ``Base.metadata``.
"""
from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)

from .session import Base


class _Record:
    """Integer identity and timestamps shared by every collection."""

    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class AppSetting(_Record, Base):
    __tablename__ = "settings"

    key = Column(String(255), unique=True, nullable=False)
    value = Column(Text, nullable=True)


class AdminUser(_Record, Base):
    __tablename__ = "admin_users"

    username = Column(String(255), unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    role = Column(String(50), default="admin", nullable=False)


class Category(_Record, Base):
    __tablename__ = "categories"

    key = Column(String(100), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    color = Column(String(50), nullable=True)


class OrgType(_Record, Base):
    __tablename__ = "org_types"

    key = Column(String(100), unique=True, nullable=False)
    name = Column(String(255), nullable=False)


class Province(_Record, Base):
    __tablename__ = "provinces"

    code = Column(String(50), unique=True, nullable=True)
    name = Column(String(255), nullable=False)
    region = Column(String(50), nullable=True)


class Ward(_Record, Base):
    __tablename__ = "wards"

    province_id = Column(Integer, ForeignKey("provinces.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(50), nullable=True)
    name = Column(String(255), nullable=False)


class Agency(_Record, Base):
    __tablename__ = "agencies"

    code = Column(String(50), unique=True, nullable=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    province_id = Column(Integer, ForeignKey("provinces.id", ondelete="SET NULL"), nullable=True, index=True)
    address = Column(Text, nullable=True)
    phone = Column(String(100), nullable=True)
    hours = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)


class Event(_Record, Base):
    __tablename__ = "events"

    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    deadline = Column(String(100), nullable=True)
    day_of_month = Column(Integer, nullable=True)
    month = Column(Integer, nullable=True)
    frequency = Column(String(100), nullable=True)
    legal_base = Column(Text, nullable=True)
    penalty = Column(Text, nullable=True)
    instructions = Column(Text, nullable=True)
    applies_to = Column(Text, nullable=True)
    priority = Column(String(50), default="medium", nullable=False)
    agency_id = Column(Integer, ForeignKey("agencies.id", ondelete="SET NULL"), nullable=True, index=True)
    province_id = Column(Integer, ForeignKey("provinces.id", ondelete="SET NULL"), nullable=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)


class NewsItem(_Record, Base):
    __tablename__ = "news"

    title = Column(String(500), nullable=False)
    summary = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    date = Column(String(50), nullable=True)
    source = Column(String(255), nullable=True)
    url = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    is_hot = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class Lawyer(_Record, Base):
    __tablename__ = "lawyers"

    full_name = Column(String(255), nullable=False)
    firm = Column(String(255), nullable=True)
    specialty = Column(String(255), nullable=True)
    phone = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    bio = Column(Text, nullable=True)
    province_id = Column(Integer, ForeignKey("provinces.id", ondelete="SET NULL"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)


class Organization(_Record, Base):
    __tablename__ = "organizations"

    name = Column(String(255), nullable=False)
    intro = Column(Text, nullable=True)
    looking_for = Column(String(255), nullable=True)
    phone = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    org_type_id = Column(Integer, ForeignKey("org_types.id", ondelete="SET NULL"), nullable=True, index=True)
    province_id = Column(Integer, ForeignKey("provinces.id", ondelete="SET NULL"), nullable=True, index=True)
    ward_id = Column(Integer, ForeignKey("wards.id", ondelete="SET NULL"), nullable=True, index=True)
    verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class SupportRequest(_Record, Base):
    __tablename__ = "support_requests"

    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(100), nullable=True)
    category = Column(String(100), default="general", nullable=False)
    subject = Column(String(500), nullable=True)
    message = Column(Text, nullable=False)
    status = Column(String(50), default="pending", nullable=False)
    admin_note = Column(Text, nullable=True)
    admin_response = Column(Text, nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
