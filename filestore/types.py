"""Collaborator contracts for the file repository."""

from typing import Protocol

from filestore.schemas.files import FileVersion


class ProjectStatsSink(Protocol):
    async def update_project_stats(self, project_name: str, file_count: int, total_size: int) -> None:
        ...


class FileVersionSink(Protocol):
    async def create_version(self, snapshot: FileVersion) -> None:
        ...

    async def delete_all_versions(self, project_name: str, file_name: str) -> None:
        ...
