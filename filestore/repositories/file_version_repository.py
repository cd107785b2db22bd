"""File version repository: immutable pre-update snapshots of files."""

from typing import List, Optional

from common.logging_config import get_logger
from common.types import IndexSpec
from filestore.backend import DocumentCollection
from filestore.exceptions import StorageError
from filestore.index_provisioner import ensure_indexes
from filestore.schemas.files import FileVersion, document_to_version

logger = get_logger(__name__)


VERSION_INDEXES: List[IndexSpec] = [
    IndexSpec(
        name="file_version_unique_idx",
        keys=(("projectName", 1), ("fileName", 1), ("version", 1)),
        unique=True,
    ),
]


class FileVersionRepository:
    def __init__(self, collection: DocumentCollection):
        self.collection = collection

    @classmethod
    async def create(cls, collection: DocumentCollection) -> "FileVersionRepository":
        repository = cls(collection)
        await ensure_indexes(collection, VERSION_INDEXES)
        return repository

    async def create_version(self, snapshot: FileVersion) -> None:
        """
        Store a snapshot. A second snapshot of the same version is rejected.

        Raises:
            StorageError: if the snapshot cannot be stored
        """
        try:
            await self.collection.insert_one(snapshot.to_document())
        except Exception as e:
            raise StorageError(
                f"Failed to create version {snapshot.version} of {snapshot.file_name} "
                f"in project {snapshot.project_name}",
                e,
            ) from e
        logger.info(
            f"Version stored [project={snapshot.project_name}, name={snapshot.file_name}, version={snapshot.version}]"
        )

    async def get_versions(self, project_name: str, file_name: str) -> List[FileVersion]:
        """
        All snapshots of a file, newest version first.
        """
        try:
            documents = await self.collection.find(
                {"projectName": project_name, "fileName": file_name},
                sort=[("version", -1)],
            )
        except Exception as e:
            raise StorageError(f"Failed to list versions of {file_name} in project {project_name}", e) from e
        return [document_to_version(doc) for doc in documents]

    async def get_version(self, project_name: str, file_name: str, version: int) -> Optional[FileVersion]:
        try:
            document = await self.collection.find_one(
                {"projectName": project_name, "fileName": file_name, "version": version}
            )
        except Exception as e:
            raise StorageError(f"Failed to load version {version} of {file_name} in project {project_name}", e) from e
        return document_to_version(document) if document else None

    async def delete_all_versions(self, project_name: str, file_name: str) -> int:
        """
        Remove every snapshot of a file.

        Returns:
            Number of snapshots deleted
        """
        try:
            deleted = await self.collection.delete_many({"projectName": project_name, "fileName": file_name})
        except Exception as e:
            raise StorageError(f"Failed to delete versions of {file_name} in project {project_name}", e) from e
        logger.info(f"Deleted {deleted} versions [project={project_name}, name={file_name}]")
        return deleted
