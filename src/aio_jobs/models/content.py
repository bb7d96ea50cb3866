"""CMS content types that can feed the job pipeline."""

from enum import Enum


class ContentType(str, Enum):
    """Closed set of content tables the pipeline reads from."""

    POSTS = "posts"
    SERVICES = "services"
    FAQS = "faqs"
    CASE_STUDIES = "case_studies"
    PRODUCTS = "products"

    @property
    def fields(self) -> tuple[str, ...]:
        """Translatable/embeddable text fields of this content type."""
        return CONTENT_FIELDS[self]


CONTENT_FIELDS: dict[ContentType, tuple[str, ...]] = {
    ContentType.POSTS: ("title", "content"),
    ContentType.SERVICES: ("name", "description"),
    ContentType.FAQS: ("question", "answer"),
    ContentType.CASE_STUDIES: ("title", "problem", "solution"),
    ContentType.PRODUCTS: ("name", "description"),
}
