"""
Models for the Folders API
"""

import uuid
from typing import List
from sqlmodel import SQLModel


class FileItem(SQLModel):
    """A file directly inside the browsed folder"""

    id: uuid.UUID
    korean_file_name: str | None = None
    english_file_name: str | None = None
    display_name: str | None = None  # Korean name first, then English
    original_relative_path: str
    size_bytes: int = 0
    modified_at: str | None = None
    keywords: List[str] = []
    reason: str | None = None
    is_directory: bool = False
    is_development: bool = False


class FolderItem(SQLModel):
    """A subfolder directly below the browsed folder, with rollups"""

    folder_name: str
    full_path: str
    file_count: int = 0
    subfolder_count: int = 0
    last_modified: str | None = None  # Latest modified_at among its files
    common_keywords: List[str] = []


class FolderContents(SQLModel):
    """Direct files and subfolders of a folder"""

    folder_path: str  # "Projects/docs"
    para_bucket: str
    para_folder: str  # normalized, "" for the bucket root
    total_files: int
    total_subfolders: int
    files: List[FileItem]
    subfolders: List[FolderItem]


class FolderNode(SQLModel):
    """A child node of the virtual folder tree"""

    display_name: str
    path_key: str  # full key path, pass back as `path` to drill down
    has_children: bool = False
    korean_display_name: str | None = None
