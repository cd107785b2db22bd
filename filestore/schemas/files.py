"""Pydantic schemas for file and file version documents."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from filestore.exceptions import ValidationError


class FileMetadata(BaseModel):
    """Descriptive metadata derived from a file's content and name."""
    model_config = ConfigDict(populate_by_name=True)

    encoding: str = Field(min_length=1)
    mime_type: str = Field(alias="mimeType", min_length=1)
    tags: Optional[List[str]] = None
    word_count: Optional[int] = Field(default=None, alias="wordCount", ge=0)
    line_count: Optional[int] = Field(default=None, alias="lineCount", ge=0)
    keywords: Optional[List[str]] = None
    summary: Optional[str] = None
    version: int = Field(default=1, ge=1)


class File(BaseModel):
    """A named text file stored in a project."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    content: str
    project_name: str = Field(alias="projectName", min_length=1)
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    size: int = Field(ge=0)
    checksum: Optional[str] = None
    metadata: FileMetadata

    def to_document(self) -> Dict[str, Any]:
        """Document form, camelCase keys, as persisted by the backend."""
        return self.model_dump(by_alias=True)


class FileVersionMetadata(FileMetadata):
    """File metadata captured in a version snapshot."""
    change_description: Optional[str] = Field(default=None, alias="changeDescription")
    is_auto_save: bool = Field(default=False, alias="isAutoSave")


class FileVersion(BaseModel):
    """Immutable snapshot of a file taken before an update was applied."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(min_length=1)
    file_id: str = Field(alias="fileId", min_length=1)
    project_name: str = Field(alias="projectName", min_length=1)
    file_name: str = Field(alias="fileName", min_length=1)
    content: str
    version: int = Field(ge=1)
    checksum: str = ""
    size: int = Field(ge=0)
    created_at: datetime = Field(alias="createdAt")
    metadata: FileVersionMetadata

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


_FILE_FIELDS = ("id", "name", "content", "projectName", "createdAt", "updatedAt", "size", "checksum", "metadata")

_VERSION_FIELDS = ("id", "fileId", "projectName", "fileName", "content", "version", "checksum", "size", "createdAt", "metadata")


def _project(doc: Dict[str, Any], fields) -> Dict[str, Any]:
    return {key: doc[key] for key in fields if key in doc}


def document_to_file(doc: Dict[str, Any]) -> File:
    """
    Validate a backend document and map it to a File.

    Used identically before a write and after every read, so a malformed
    record is rejected the same way wherever it shows up.

    Args:
        doc: Document with camelCase keys; backend-private keys are ignored

    Returns:
        Validated File

    Raises:
        ValidationError: if the document does not satisfy the File schema
    """
    try:
        return File.model_validate(_project(doc, _FILE_FIELDS))
    except PydanticValidationError as e:
        raise ValidationError(e.errors()) from e


def document_to_version(doc: Dict[str, Any]) -> FileVersion:
    """
    Validate a backend document and map it to a FileVersion.

    Raises:
        ValidationError: if the document does not satisfy the FileVersion schema
    """
    try:
        return FileVersion.model_validate(_project(doc, _VERSION_FIELDS))
    except PydanticValidationError as e:
        raise ValidationError(e.errors()) from e
