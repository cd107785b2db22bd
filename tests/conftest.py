"""Shared pytest fixtures for all tests."""

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from filestore.database import SQLiteDocumentStore
from filestore.repositories.file_repository import FileRepository
from filestore.repositories.file_version_repository import FileVersionRepository
from filestore.repositories.project_repository import ProjectRepository


@pytest.fixture
def database_path(tmp_path):
    """
    Path of a fresh SQLite database for one test.
    """
    return str(tmp_path / "filestore.db")


@pytest.fixture
def store(database_path):
    return SQLiteDocumentStore(database_path)


@pytest.fixture
def files_collection(store):
    return store.collection("memory_files")


@pytest_asyncio.fixture
async def version_repository(store):
    return await FileVersionRepository.create(store.collection("memory_file_versions"))


@pytest_asyncio.fixture
async def project_repository(store):
    return await ProjectRepository.create(store.collection("projects"))


@pytest_asyncio.fixture
async def repository(files_collection, project_repository, version_repository):
    """
    Fully wired FileRepository with version history and project stats.
    """
    return await FileRepository.create(
        files_collection,
        project_repository=project_repository,
        file_version_repository=version_repository,
    )


@pytest.fixture
def file_document():
    """
    Factory for valid stored file documents, for inserting straight into a collection.
    """
    def make(**overrides):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        document = {
            "id": "file-1",
            "name": "notes.md",
            "content": "Hello world",
            "projectName": "P",
            "createdAt": now,
            "updatedAt": now,
            "size": 11,
            "checksum": "abc",
            "metadata": {
                "encoding": "utf-8",
                "mimeType": "text/markdown",
                "tags": None,
                "wordCount": 2,
                "lineCount": 1,
                "keywords": [],
                "summary": "Hello world",
                "version": 1,
            },
        }
        document.update(overrides)
        return document

    return make
