"""Wires the SQLite document store to the file, version and project repositories."""

from typing import Optional

from common.logging_config import setup_logging
from filestore.config import FILES_COLLECTION, PROJECTS_COLLECTION, VERSIONS_COLLECTION
from filestore.database import SQLiteDocumentStore
from filestore.repositories.file_repository import FileRepository
from filestore.repositories.file_version_repository import FileVersionRepository
from filestore.repositories.project_repository import ProjectRepository

logger = setup_logging('filestore')


async def build_file_repository(
    database_path: Optional[str] = None,
    enable_versioning: bool = True,
) -> FileRepository:
    """
    Open the store and return a provisioned FileRepository.

    Args:
        database_path: SQLite file; defaults to FILESTORE_DATABASE_PATH
        enable_versioning: Keep pre-update snapshots in the versions collection

    Returns:
        FileRepository with project statistics and, optionally, version history
    """
    store = SQLiteDocumentStore(database_path)

    project_repository = await ProjectRepository.create(store.collection(PROJECTS_COLLECTION))

    file_version_repository = None
    if enable_versioning:
        file_version_repository = await FileVersionRepository.create(store.collection(VERSIONS_COLLECTION))

    repository = await FileRepository.create(
        store.collection(FILES_COLLECTION),
        project_repository=project_repository,
        file_version_repository=file_version_repository,
    )
    logger.info(f"File repository ready [database={store.database_path}, versioning={enable_versioning}]")
    return repository
