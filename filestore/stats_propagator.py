"""Recomputes project file statistics and forwards them to the project-statistics sink."""

from typing import Optional

from common.logging_config import get_logger
from common.types import ProjectStats
from filestore.backend import DocumentCollection
from filestore.types import ProjectStatsSink

logger = get_logger(__name__)


class StatsPropagator:
    def __init__(self, collection: DocumentCollection, sink: Optional[ProjectStatsSink] = None):
        self.collection = collection
        self.sink = sink

    async def aggregate(self, project_name: str) -> ProjectStats:
        """
        Count the project's files and sum their sizes.

        Raises whatever the backend raises.
        """
        file_count, total_size = await self.collection.aggregate_count_and_sum(
            {"projectName": project_name}, "size"
        )
        return ProjectStats(file_count=file_count, total_size=total_size)

    async def refresh(self, project_name: str) -> None:
        """
        Push fresh statistics for project_name to the sink.

        Never raises: the mutation that triggered the refresh has already succeeded.
        """
        try:
            stats = await self.aggregate(project_name)
            if self.sink is not None:
                await self.sink.update_project_stats(project_name, stats.file_count, stats.total_size)
            logger.debug(
                f"Project stats refreshed [project={project_name}, files={stats.file_count}, size={stats.total_size}]"
            )
        except Exception as e:
            logger.warning(f"Failed to update project stats for {project_name}: {e}")
