from typing import Any, Dict, Optional
from datetime import datetime
import uuid

from sqlalchemy import (
    JSON,
    String,
    Boolean,
    Integer,
    Index,
    func,
    DateTime,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def generate_id() -> str:
    return uuid.uuid4().hex


# Base model with common audit fields
class AuditMixin:
    """Mixin for common audit fields"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
    )


class User(Base, AuditMixin):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)
    email: Mapped[str] = mapped_column(String(320), unique=True)  # RFC 5321 max length
    display_name: Mapped[str] = mapped_column(String(200), default="", nullable=False)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    access_token_version: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime)

    __table_args__ = (Index("idx_users_email", "email"),)


class Document(Base, AuditMixin):
    """One schemaless document; the JSON body is never validated here."""

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)
    collection: Mapped[str] = mapped_column(String(100), nullable=False)
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (Index("idx_documents_collection", "collection"),)
