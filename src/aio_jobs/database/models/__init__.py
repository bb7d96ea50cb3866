"""Database ORM models."""

from .content import CaseStudyORM, FaqORM, OrganizationORM, PostORM, ProductORM, ServiceORM
from .embedding import EmbeddingORM
from .interview_session import InterviewSessionORM
from .job import EmbeddingJobORM, TranslationJobORM

__all__ = [
    "TranslationJobORM",
    "EmbeddingJobORM",
    "EmbeddingORM",
    "InterviewSessionORM",
    "OrganizationORM",
    "PostORM",
    "ServiceORM",
    "FaqORM",
    "CaseStudyORM",
    "ProductORM",
]
