"""Repository layer for data access."""

from filestore.repositories.file_repository import FileRepository
from filestore.repositories.file_version_repository import FileVersionRepository
from filestore.repositories.project_repository import ProjectRepository

__all__ = [
    "FileRepository",
    "FileVersionRepository",
    "ProjectRepository",
]
