"""Best-effort creation of the indexes the file collection relies on."""

from typing import List, Optional

from common.constants import SEARCH_WEIGHTS
from common.logging_config import get_logger
from common.types import IndexSpec
from filestore.backend import DocumentCollection
from filestore.exceptions import IndexConflictError

logger = get_logger(__name__)


FILE_INDEXES: List[IndexSpec] = [
    IndexSpec(name="project_name_unique_idx", keys=(("projectName", 1), ("name", 1)), unique=True),
    IndexSpec(name="project_updated_idx", keys=(("projectName", 1), ("updatedAt", -1))),
    IndexSpec(name="file_checksum_idx", keys=(("checksum", 1),)),
    IndexSpec(name="mime_type_idx", keys=(("metadata.mimeType", 1),)),
    IndexSpec(name="file_size_idx", keys=(("size", 1),)),
    IndexSpec(name="tags_idx", keys=(("metadata.tags", 1),)),
    IndexSpec(
        name="content_search_index",
        keys=(
            ("content", "text"),
            ("name", "text"),
            ("metadata.tags", "text"),
            ("metadata.keywords", "text"),
        ),
        weights=dict(SEARCH_WEIGHTS),
    ),
]


async def create_index_safely(collection: DocumentCollection, spec: IndexSpec) -> bool:
    """
    Create one index, replacing a conflicting definition of the same name.

    Never raises; failures are logged.

    Returns:
        True if the index is in place afterwards, False otherwise
    """
    try:
        await collection.create_index(spec)
        logger.debug(f"Ensured index {spec.name} on {collection.name}")
        return True
    except IndexConflictError:
        logger.warning(f"Index conflict for {spec.name} on {collection.name}, recreating")
        try:
            await collection.drop_index(spec.name)
            await collection.create_index(spec)
            logger.info(f"Recreated index {spec.name} on {collection.name}")
            return True
        except Exception as e:
            logger.warning(f"Could not recreate index {spec.name} on {collection.name}: {e}")
            return False
    except Exception as e:
        logger.warning(f"Failed to create index {spec.name} on {collection.name}: {e}")
        return False


async def ensure_indexes(collection: DocumentCollection, specs: Optional[List[IndexSpec]] = None) -> List[str]:
    """
    Idempotently ensure every index in specs exists on the collection.

    Args:
        collection: Target document collection
        specs: Index definitions; defaults to FILE_INDEXES

    Returns:
        Names of the indexes that are in place
    """
    if specs is None:
        specs = FILE_INDEXES

    ensured = []
    for spec in specs:
        if await create_index_safely(collection, spec):
            ensured.append(spec.name)

    if len(ensured) == len(specs):
        logger.info(f"Index setup completed for {collection.name}")
    else:
        logger.warning(f"Index setup for {collection.name} incomplete, ensured {ensured}")
    return ensured
