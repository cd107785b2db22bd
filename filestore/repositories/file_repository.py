"""File repository: versioned, checksummed, searchable project files over a document collection."""

from typing import Any, Dict, List, Optional

from common.constants import SEARCH_RESULT_LIMIT, VERSION_CHANGE_DESCRIPTION
from common.logging_config import get_logger
from common.types import ProjectStats
from filestore.backend import DocumentCollection
from filestore.checksum_validator import compute_checksum, content_size
from filestore.exceptions import StorageError, ValidationError
from filestore.index_provisioner import ensure_indexes
from filestore.metadata_enricher import enrich
from filestore.schemas.files import File, FileVersion, document_to_file
from filestore.stats_propagator import StatsPropagator
from filestore.types import FileVersionSink, ProjectStatsSink
from filestore.utils import generate_uuid, utc_now

logger = get_logger(__name__)


class FileRepository:
    """
    Stores project files in a document collection.

    Every write recomputes size, checksum and metadata. Updates snapshot the
    previous state into the version repository when one is configured, and
    every mutation pushes fresh project statistics to the project repository.
    Both collaborators are optional and best-effort.
    """

    def __init__(
        self,
        collection: DocumentCollection,
        project_repository: Optional[ProjectStatsSink] = None,
        file_version_repository: Optional[FileVersionSink] = None,
    ):
        self.collection = collection
        self.project_repository = project_repository
        self.file_version_repository = file_version_repository
        self.stats = StatsPropagator(collection, project_repository)

    @classmethod
    async def create(
        cls,
        collection: DocumentCollection,
        project_repository: Optional[ProjectStatsSink] = None,
        file_version_repository: Optional[FileVersionSink] = None,
    ) -> "FileRepository":
        """Build a repository and provision its indexes before it serves requests."""
        repository = cls(collection, project_repository, file_version_repository)
        await repository.initialize()
        return repository

    async def initialize(self) -> List[str]:
        """
        Ensure the collection's indexes. Safe to call more than once.

        Returns:
            Names of the indexes in place
        """
        return await ensure_indexes(self.collection)

    @staticmethod
    def _key(project_name: str, file_name: str) -> Dict[str, Any]:
        return {"projectName": project_name, "name": file_name}

    @staticmethod
    def _derived_fields(
        content: str,
        file_name: str,
        version: Optional[int] = None,
        tags: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Size, checksum and metadata for content; left unset when content is not text."""
        if not isinstance(content, str) or not isinstance(file_name, str):
            return {"size": None, "checksum": None, "metadata": None}
        return {
            "size": content_size(content),
            "checksum": compute_checksum(content),
            "metadata": enrich(content, file_name, version, tags=tags),
        }

    @staticmethod
    def _validated(document: Dict[str, Any], project_name: str, file_name: str) -> File:
        try:
            return document_to_file(document)
        except ValidationError as e:
            logger.warning(f"Rejected file [project={project_name}, name={file_name}]: {e}")
            raise

    async def list_files(self, project_name: str) -> List[File]:
        try:
            documents = await self.collection.find(
                {"projectName": project_name}, sort=[("updatedAt", -1)]
            )
        except Exception as e:
            logger.error(f"Failed to list files [project={project_name}]: {e}", exc_info=True)
            raise StorageError(f"Failed to list files for project {project_name}", e) from e

        return [document_to_file(doc) for doc in documents]

    async def load_file(self, project_name: str, file_name: str) -> Optional[File]:
        logger.debug(f"Loading file [project={project_name}, name={file_name}]")
        try:
            document = await self.collection.find_one(self._key(project_name, file_name))
        except Exception as e:
            logger.error(f"Failed to load file [project={project_name}, name={file_name}]: {e}", exc_info=True)
            raise StorageError(f"Failed to load file {file_name} from project {project_name}", e) from e

        return document_to_file(document) if document else None

    async def write_file(
        self,
        project_name: str,
        file_name: str,
        content: str,
        tags: Optional[List[str]] = None,
    ) -> File:
        """
        Create a new file at version 1.

        Raises:
            ValidationError: if the assembled record fails the File schema
            StorageError: if the insert fails, including a duplicate (project, name)
        """
        logger.info(f"Writing file [project={project_name}, name={file_name}]")
        now = utc_now()
        document = {
            "id": generate_uuid(),
            "name": file_name,
            "content": content,
            "projectName": project_name,
            "createdAt": now,
            "updatedAt": now,
            **self._derived_fields(content, file_name, tags=tags),
        }
        file = self._validated(document, project_name, file_name)

        try:
            await self.collection.insert_one(file.to_document())
        except Exception as e:
            logger.error(f"Failed to write file [project={project_name}, name={file_name}]: {e}")
            raise StorageError(f"Failed to write file {file_name} to project {project_name}", e) from e

        logger.info(f"File written [project={project_name}, name={file_name}, size={file.size}]")
        await self.stats.refresh(project_name)
        return file

    async def update_file(
        self,
        project_name: str,
        file_name: str,
        content: str,
        tags: Optional[List[str]] = None,
    ) -> Optional[File]:
        """
        Replace a file's content and bump its version.

        Tags are kept from the current document unless new ones are given.

        Returns:
            The updated File, or None if no such file exists
        """
        logger.info(f"Updating file [project={project_name}, name={file_name}]")
        try:
            current = await self.collection.find_one(self._key(project_name, file_name))
        except Exception as e:
            logger.error(f"Failed to read file for update [project={project_name}, name={file_name}]: {e}")
            raise StorageError(f"Failed to update file {file_name} in project {project_name}", e) from e

        if current is None:
            logger.info(f"File not found for update [project={project_name}, name={file_name}]")
            return None

        current_metadata = current.get("metadata") or {}
        new_version = (current_metadata.get("version") or 1) + 1
        new_tags = tags if tags is not None else current_metadata.get("tags")
        fields = {
            "content": content,
            "updatedAt": utc_now(),
            **self._derived_fields(content, file_name, new_version, tags=new_tags),
        }
        file = self._validated({**current, **fields}, project_name, file_name)

        await self._snapshot(current)

        try:
            updated = await self.collection.find_one_and_update(
                self._key(project_name, file_name), file.to_document()
            )
        except Exception as e:
            logger.error(f"Failed to update file [project={project_name}, name={file_name}]: {e}")
            raise StorageError(f"Failed to update file {file_name} in project {project_name}", e) from e

        if updated is None:
            # Deleted between the lookup and the replace.
            logger.info(f"File vanished during update [project={project_name}, name={file_name}]")
            return None

        logger.info(f"File updated [project={project_name}, name={file_name}, version={new_version}]")
        await self.stats.refresh(project_name)
        return document_to_file(updated)

    async def _snapshot(self, current: Dict[str, Any]) -> None:
        """Record the pre-update state in version history, if configured. Never raises."""
        if self.file_version_repository is None:
            return

        try:
            metadata = dict(current.get("metadata") or {})
            metadata["changeDescription"] = VERSION_CHANGE_DESCRIPTION
            metadata["isAutoSave"] = False
            snapshot = FileVersion.model_validate({
                "id": generate_uuid(),
                "fileId": current["id"],
                "projectName": current["projectName"],
                "fileName": current["name"],
                "content": current["content"],
                "version": metadata.get("version") or 1,
                "checksum": current.get("checksum") or "",
                "size": current["size"],
                "createdAt": current["updatedAt"],
                "metadata": metadata,
            })
            await self.file_version_repository.create_version(snapshot)
        except Exception as e:
            logger.warning(f"Failed to create version for {current.get('name')}: {e}")

    async def delete_file(self, project_name: str, file_name: str) -> bool:
        """
        Delete a file and its version history.

        Returns:
            True if a file was removed, False if none matched
        """
        logger.info(f"Deleting file [project={project_name}, name={file_name}]")
        try:
            deleted = await self.collection.delete_one(self._key(project_name, file_name)) > 0
        except Exception as e:
            logger.error(f"Failed to delete file [project={project_name}, name={file_name}]: {e}")
            raise StorageError(f"Failed to delete file {file_name} from project {project_name}", e) from e

        if not deleted:
            logger.info(f"File not found for delete [project={project_name}, name={file_name}]")
            return False

        if self.file_version_repository is not None:
            try:
                await self.file_version_repository.delete_all_versions(project_name, file_name)
            except Exception as e:
                logger.warning(f"Failed to delete versions for {file_name}: {e}")

        await self.stats.refresh(project_name)
        return True

    async def search_files(self, project_name: str, query: str) -> List[File]:
        """Full-text search within a project, best match first."""
        try:
            documents = await self.collection.text_search(
                {"projectName": project_name}, query, limit=SEARCH_RESULT_LIMIT
            )
        except Exception as e:
            logger.error(f"Search failed [project={project_name}, query={query!r}]: {e}")
            raise StorageError(f"Failed to search files in project {project_name}", e) from e

        logger.debug(f"Search matched {len(documents)} files [project={project_name}, query={query!r}]")
        return [document_to_file(doc) for doc in documents]

    async def get_files_by_tags(self, project_name: str, tags: List[str]) -> List[File]:
        """Files carrying at least one of tags, most recently updated first."""
        if not tags:
            return []

        try:
            documents = await self.collection.find(
                {"projectName": project_name, "metadata.tags": {"$in": list(tags)}},
                sort=[("updatedAt", -1)],
            )
        except Exception as e:
            logger.error(f"Tag query failed [project={project_name}, tags={tags}]: {e}")
            raise StorageError(f"Failed to get files by tags in project {project_name}", e) from e

        return [document_to_file(doc) for doc in documents]

    async def get_project_stats(self, project_name: str) -> ProjectStats:
        try:
            return await self.stats.aggregate(project_name)
        except Exception as e:
            logger.error(f"Failed to aggregate stats [project={project_name}]: {e}")
            raise StorageError(f"Failed to get project stats for {project_name}", e) from e
