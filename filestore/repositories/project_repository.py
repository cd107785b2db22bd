"""Project repository: per-project file statistics."""

from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from common.logging_config import get_logger
from common.types import IndexSpec
from filestore.backend import DocumentCollection
from filestore.exceptions import StorageError, ValidationError
from filestore.index_provisioner import ensure_indexes
from filestore.schemas.projects import Project
from filestore.utils import utc_now

logger = get_logger(__name__)


PROJECT_INDEXES: List[IndexSpec] = [
    IndexSpec(name="project_unique_name_idx", keys=(("name", 1),), unique=True),
]


class ProjectRepository:
    def __init__(self, collection: DocumentCollection):
        self.collection = collection

    @classmethod
    async def create(cls, collection: DocumentCollection) -> "ProjectRepository":
        repository = cls(collection)
        await ensure_indexes(collection, PROJECT_INDEXES)
        return repository

    async def update_project_stats(self, project_name: str, file_count: int, total_size: int) -> None:
        """
        Record the latest file count and total size, creating the project if needed.

        Raises:
            StorageError: if the record cannot be written
        """
        try:
            await self.collection.upsert_one(
                {"name": project_name},
                {"fileCount": file_count, "totalSize": total_size, "lastAccessed": utc_now()},
            )
        except Exception as e:
            raise StorageError(f"Failed to update stats for project {project_name}", e) from e
        logger.debug(f"Project stats stored [project={project_name}, files={file_count}, size={total_size}]")

    async def get_project(self, project_name: str) -> Optional[Project]:
        try:
            document = await self.collection.find_one({"name": project_name})
        except Exception as e:
            raise StorageError(f"Failed to load project {project_name}", e) from e

        if document is None:
            return None
        try:
            return Project.model_validate(document)
        except PydanticValidationError as e:
            raise ValidationError(e.errors()) from e
