"""Tests for best-effort index provisioning."""

from unittest.mock import AsyncMock

import pytest

from common.types import IndexSpec
from filestore.exceptions import BackendError, IndexConflictError
from filestore.index_provisioner import FILE_INDEXES, create_index_safely, ensure_indexes

ALL_NAMES = [
    "project_name_unique_idx",
    "project_updated_idx",
    "file_checksum_idx",
    "mime_type_idx",
    "file_size_idx",
    "tags_idx",
    "content_search_index",
]


def broken_collection(**side_effects):
    collection = AsyncMock()
    collection.name = "broken"
    for method, effect in side_effects.items():
        getattr(collection, method).side_effect = effect
    return collection


class TestEnsureIndexes:
    """Test provisioning against a real collection."""

    @pytest.mark.asyncio
    async def test_creates_all_indexes(self, files_collection):
        ensured = await ensure_indexes(files_collection)

        assert ensured == ALL_NAMES
        assert sorted(await files_collection.list_indexes()) == sorted(ALL_NAMES)

    @pytest.mark.asyncio
    async def test_idempotent(self, files_collection):
        await ensure_indexes(files_collection)
        before = await files_collection.list_indexes()

        ensured = await ensure_indexes(files_collection)

        assert ensured == ALL_NAMES
        assert await files_collection.list_indexes() == before

    @pytest.mark.asyncio
    async def test_text_index_weights(self, files_collection):
        await ensure_indexes(files_collection)

        definition = (await files_collection.list_indexes())["content_search_index"]

        assert definition["weights"] == {"name": 10, "metadata.keywords": 8, "metadata.tags": 5, "content": 1}

    @pytest.mark.asyncio
    async def test_conflicting_index_is_recreated(self, files_collection):
        await files_collection.create_index(IndexSpec(name="tags_idx", keys=(("name", 1),)))

        ensured = await ensure_indexes(files_collection)

        assert "tags_idx" in ensured
        assert (await files_collection.list_indexes())["tags_idx"]["keys"] == [["metadata.tags", 1]]

    @pytest.mark.asyncio
    async def test_custom_specs(self, files_collection):
        spec = IndexSpec(name="only_idx", keys=(("size", 1),))

        assert await ensure_indexes(files_collection, [spec]) == ["only_idx"]
        assert list(await files_collection.list_indexes()) == ["only_idx"]

    @pytest.mark.asyncio
    async def test_none_specs_means_file_indexes(self, files_collection):
        ensured = await ensure_indexes(files_collection, None)

        assert ensured == [spec.name for spec in FILE_INDEXES]


class TestFailuresAreSwallowed:
    """Provisioning never raises."""

    @pytest.mark.asyncio
    async def test_backend_failure(self):
        collection = broken_collection(create_index=BackendError("down"))

        assert await ensure_indexes(collection) == []
        assert collection.create_index.await_count == len(FILE_INDEXES)
        collection.drop_index.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_recreate_failure(self):
        collection = broken_collection(
            create_index=IndexConflictError("conflict"),
            drop_index=BackendError("cannot drop"),
        )

        assert await create_index_safely(collection, FILE_INDEXES[0]) is False
        collection.drop_index.assert_awaited_once_with("project_name_unique_idx")

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_going(self):
        async def create_index(spec):
            if spec.is_text:
                raise BackendError("no fts5")

        collection = broken_collection(create_index=create_index)

        ensured = await ensure_indexes(collection)

        assert ensured == ALL_NAMES[:-1]
