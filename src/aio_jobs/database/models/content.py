"""Organization and CMS content ORM models (read by the bulk enqueue)."""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ...core.clock import utcnow
from ..base import Base


class OrganizationORM(Base):
    """ORM model for organizations table."""

    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[Optional[str]] = mapped_column(String(100), unique=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)


class ContentColumnsMixin:
    """Columns every content table carries."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    organization_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)


class PostORM(ContentColumnsMixin, Base):
    """ORM model for posts table."""

    __tablename__ = "posts"

    title: Mapped[Optional[str]] = mapped_column(String(500))
    content: Mapped[Optional[str]] = mapped_column(Text)


class ServiceORM(ContentColumnsMixin, Base):
    """ORM model for services table."""

    __tablename__ = "services"

    name: Mapped[Optional[str]] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)


class FaqORM(ContentColumnsMixin, Base):
    """ORM model for faqs table."""

    __tablename__ = "faqs"

    question: Mapped[Optional[str]] = mapped_column(Text)
    answer: Mapped[Optional[str]] = mapped_column(Text)


class CaseStudyORM(ContentColumnsMixin, Base):
    """ORM model for case_studies table."""

    __tablename__ = "case_studies"

    title: Mapped[Optional[str]] = mapped_column(String(500))
    problem: Mapped[Optional[str]] = mapped_column(Text)
    solution: Mapped[Optional[str]] = mapped_column(Text)


class ProductORM(ContentColumnsMixin, Base):
    """ORM model for products table."""

    __tablename__ = "products"

    name: Mapped[Optional[str]] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
