"""Document backend contract used by the repositories.

Filters are dicts keyed by dotted field paths. A plain value matches by
equality; ``{"$in": [...]}`` matches a scalar field whose value is in the
list, or an array field sharing at least one element with it.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from common.types import IndexSpec

Document = Dict[str, Any]
Filter = Dict[str, Any]
SortSpec = Sequence[Tuple[str, int]]


class DocumentCollection(Protocol):
    name: str

    async def create_index(self, spec: IndexSpec) -> None:
        """Create a named index. Raises IndexConflictError if the name is taken by another definition."""
        ...

    async def drop_index(self, name: str) -> None:
        ...

    async def list_indexes(self) -> Dict[str, Dict[str, Any]]:
        ...

    async def find_one(self, filter: Filter) -> Optional[Document]:
        ...

    async def find(
        self,
        filter: Filter,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        ...

    async def text_search(
        self,
        filter: Filter,
        query: str,
        limit: Optional[int] = None,
    ) -> List[Document]:
        """Documents matching query on the text index, best relevance first."""
        ...

    async def aggregate_count_and_sum(self, filter: Filter, field: str) -> Tuple[int, int]:
        ...

    async def insert_one(self, document: Document) -> Document:
        """Raises DuplicateKeyError on a unique index violation."""
        ...

    async def find_one_and_update(self, filter: Filter, fields: Document) -> Optional[Document]:
        """Atomically set fields on the first match and return the updated document."""
        ...

    async def upsert_one(self, filter: Filter, fields: Document) -> Document:
        ...

    async def delete_one(self, filter: Filter) -> int:
        ...

    async def delete_many(self, filter: Filter) -> int:
        ...
