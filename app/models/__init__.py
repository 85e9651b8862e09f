# Import every model so Base.metadata is complete (alembic, create_all).
from app.models.package import Package  # noqa: F401
from app.models.writer import Writer  # noqa: F401
from app.models.client import Client  # noqa: F401
from app.models.project import Project  # noqa: F401
from app.models.project_history import ProjectHistoryEntry  # noqa: F401
from app.models.reference_code import ReferenceCodeReservation  # noqa: F401
