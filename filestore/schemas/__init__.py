"""Pydantic schemas for stored file documents."""

from filestore.schemas.files import (
    File,
    FileMetadata,
    FileVersion,
    FileVersionMetadata,
    document_to_file,
    document_to_version,
)
from filestore.schemas.projects import Project

__all__ = [
    "File",
    "FileMetadata",
    "FileVersion",
    "FileVersionMetadata",
    "Project",
    "document_to_file",
    "document_to_version",
]
