"""Pydantic schema for stored project statistics."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Project(BaseModel):
    """Project record kept current by file mutations."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    file_count: int = Field(default=0, alias="fileCount", ge=0)
    total_size: int = Field(default=0, alias="totalSize", ge=0)
    last_accessed: Optional[datetime] = Field(default=None, alias="lastAccessed")
