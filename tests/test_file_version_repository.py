"""Integration tests for the version history repository."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from filestore.exceptions import BackendError, StorageError, ValidationError
from filestore.repositories.file_version_repository import FileVersionRepository
from filestore.schemas.files import FileVersion


def make_version(version=1, file_name="notes.md", project_name="P", content="Hello world"):
    return FileVersion.model_validate({
        "id": f"v-{project_name}-{file_name}-{version}",
        "fileId": "file-1",
        "projectName": project_name,
        "fileName": file_name,
        "content": content,
        "version": version,
        "checksum": "abc",
        "size": len(content),
        "createdAt": datetime(2024, 1, version, tzinfo=timezone.utc),
        "metadata": {
            "encoding": "utf-8",
            "mimeType": "text/markdown",
            "version": version,
            "changeDescription": "updated",
            "isAutoSave": False,
        },
    })


class TestFileVersionRepository:
    """Test snapshot storage and retrieval."""

    @pytest.mark.asyncio
    async def test_create_and_get_versions(self, version_repository):
        await version_repository.create_version(make_version(1, content="one"))
        await version_repository.create_version(make_version(2, content="two"))
        await version_repository.create_version(make_version(1, file_name="other.md"))

        versions = await version_repository.get_versions("P", "notes.md")

        assert [v.version for v in versions] == [2, 1]
        assert [v.content for v in versions] == ["two", "one"]
        assert versions[0].metadata.change_description == "updated"

    @pytest.mark.asyncio
    async def test_get_single_version(self, version_repository):
        await version_repository.create_version(make_version(1, content="one"))

        assert (await version_repository.get_version("P", "notes.md", 1)).content == "one"
        assert await version_repository.get_version("P", "notes.md", 2) is None

    @pytest.mark.asyncio
    async def test_duplicate_version_rejected(self, version_repository):
        await version_repository.create_version(make_version(1))

        with pytest.raises(StorageError):
            await version_repository.create_version(make_version(1))

    @pytest.mark.asyncio
    async def test_delete_all_versions(self, version_repository):
        await version_repository.create_version(make_version(1))
        await version_repository.create_version(make_version(2))
        await version_repository.create_version(make_version(1, project_name="Q"))

        assert await version_repository.delete_all_versions("P", "notes.md") == 2
        assert await version_repository.get_versions("P", "notes.md") == []
        assert len(await version_repository.get_versions("Q", "notes.md")) == 1

    def test_snapshots_are_immutable(self):
        snapshot = make_version(1)

        with pytest.raises(Exception):
            snapshot.content = "changed"

    @pytest.mark.asyncio
    async def test_malformed_snapshot_surfaces_on_read(self, store, version_repository):
        await store.collection("memory_file_versions").insert_one({"projectName": "P", "fileName": "notes.md"})

        with pytest.raises(ValidationError):
            await version_repository.get_versions("P", "notes.md")

    @pytest.mark.asyncio
    async def test_backend_failure_wrapped(self):
        collection = AsyncMock()
        collection.delete_many.side_effect = BackendError("down")

        with pytest.raises(StorageError):
            await FileVersionRepository(collection).delete_all_versions("P", "notes.md")
