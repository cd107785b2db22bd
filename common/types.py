"""Shared data type definitions (ProjectStats, IndexSpec)."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class ProjectStats:
    """
    Aggregate file count and byte size for a project.
    """
    file_count: int = 0
    total_size: int = 0


@dataclass(frozen=True)
class IndexSpec:
    """
    Named index definition on a document collection.

    keys holds (field_path, direction) pairs; direction is 1, -1 or "text".
    """
    name: str
    keys: Tuple[Tuple[str, object], ...]
    unique: bool = False
    weights: Optional[Dict[str, int]] = field(default=None)

    @property
    def is_text(self) -> bool:
        return any(direction == "text" for _, direction in self.keys)

    @property
    def fields(self) -> List[str]:
        return [path for path, _ in self.keys]
