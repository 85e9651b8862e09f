import logging

from sqlalchemy import select
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import session_scope
from app.models.package import Package
from app.models.writer import Writer

logger = logging.getLogger(__name__)

PACKAGES = [
    {
        "slug": "thesis-writing",
        "name": "Thesis Writing",
        "required_fields_json": [
            {"name": "expected_outputs", "label": "Expected outputs", "type": "textarea", "required": True},
            {"name": "chapters", "label": "Chapters needed", "type": "number", "required": True},
            {
                "name": "citation_style",
                "label": "Citation style",
                "type": "select",
                "required": True,
                "options": ["APA", "MLA", "Chicago"],
            },
        ],
    },
    {
        "slug": "research-paper",
        "name": "Research Paper",
        "required_fields_json": [
            {"name": "expected_outputs", "label": "Expected outputs", "type": "textarea", "required": True},
            {"name": "page_count", "label": "Pages", "type": "number", "required": False},
        ],
    },
]

WRITERS = [
    {"full_name": "Ana Reyes", "email": "ana.reyes@example.com"},
    {"full_name": "Marco Santos", "email": "marco.santos@example.com"},
]


def seed():
    settings = get_settings()
    with session_scope() as db:
        for pkg in PACKAGES:
            exists = db.execute(select(Package.id).where(Package.slug == pkg["slug"])).first()
            if exists is None:
                db.add(Package(**pkg, is_active=True))

        for w in WRITERS:
            exists = db.execute(select(Writer.id).where(Writer.email == w["email"])).first()
            if exists is None:
                db.add(Writer(**w, is_active=True, max_concurrent_projects=settings.default_writer_capacity))

    logger.info("seed complete", extra={"packages": len(PACKAGES), "writers": len(WRITERS)})


if __name__ == "__main__":
    configure_logging(get_settings())
    seed()
