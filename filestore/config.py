"""Configuration settings for the file store."""

import os


DATABASE_PATH = os.environ.get("FILESTORE_DATABASE_PATH", "./data/filestore.db")

FILES_COLLECTION = os.environ.get("FILESTORE_FILES_COLLECTION", "memory_files")

VERSIONS_COLLECTION = os.environ.get("FILESTORE_VERSIONS_COLLECTION", "memory_file_versions")

PROJECTS_COLLECTION = os.environ.get("FILESTORE_PROJECTS_COLLECTION", "projects")
