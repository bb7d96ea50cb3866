"""Read-only access to organizations and CMS content tables."""

from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.models.content import (
    CaseStudyORM,
    FaqORM,
    OrganizationORM,
    PostORM,
    ProductORM,
    ServiceORM,
)
from ..models.content import ContentType

ContentORM = Union[PostORM, ServiceORM, FaqORM, CaseStudyORM, ProductORM]

# Every content type maps to exactly one ORM class; no table name is built from input
CONTENT_MODELS: dict[ContentType, type] = {
    ContentType.POSTS: PostORM,
    ContentType.SERVICES: ServiceORM,
    ContentType.FAQS: FaqORM,
    ContentType.CASE_STUDIES: CaseStudyORM,
    ContentType.PRODUCTS: ProductORM,
}


class ContentRepository:
    """Repository for content lookups used by enqueue validation and bulk enqueue."""

    def __init__(self, session: AsyncSession):
        """Initialize content repository."""
        self.session = session

    async def organization_exists(self, organization_id: str) -> bool:
        """Check whether an organization exists."""
        return await self.session.get(OrganizationORM, organization_id) is not None

    async def get_row(
        self, content_type: ContentType, source_id: str
    ) -> Optional[ContentORM]:
        """
        Get one content row.

        Args:
            content_type: Content type
            source_id: Row ID

        Returns:
            ORM content instance or None
        """
        return await self.session.get(CONTENT_MODELS[content_type], source_id)

    async def list_field_values(
        self, organization_id: str, content_type: ContentType
    ) -> list[tuple[str, dict[str, Optional[str]]]]:
        """
        List an organization's rows of one content type with their text fields.

        Args:
            organization_id: Organization ID
            content_type: Content type

        Returns:
            List of (row id, {field: value}) in creation order
        """
        model = CONTENT_MODELS[content_type]
        columns = [getattr(model, field) for field in content_type.fields]
        result = await self.session.execute(
            select(model.id, *columns)
            .where(model.organization_id == organization_id)
            .order_by(model.created_at.asc(), model.id.asc())
        )
        return [
            (row.id, {field: getattr(row, field) for field in content_type.fields})
            for row in result.all()
        ]
