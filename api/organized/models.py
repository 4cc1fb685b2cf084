"""
Organized File Models - flat PARA records.

The table model stores one organized file per (owner, original relative path).
The request/response models below mirror the bulk save and listing endpoints.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal
from sqlmodel import SQLModel, Field, Column, UniqueConstraint
from sqlalchemy import JSON
from pydantic import ConfigDict


class ParaBucket(str, Enum):
    """The four top-level PARA categories."""
    PROJECTS = "Projects"
    AREAS = "Areas"
    RESOURCES = "Resources"
    ARCHIVE = "Archive"

    @classmethod
    def _missing_(cls, value):
        # Case-insensitive lookup, e.g. "projects" or " ARCHIVE "
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        return None


def build_para_full_path(para_bucket: str | None, para_folder: str | None) -> str | None:
    """
    Derive the lowercase full path of a record from its bucket and folder.

    >>> build_para_full_path("Archive", "Notes")
    'archive/notes'
    """
    if para_bucket is None or not para_bucket.strip():
        return None

    bucket_lower = para_bucket.strip().lower()
    if para_folder is None or not para_folder.strip():
        return bucket_lower

    return f"{bucket_lower}/{para_folder.strip().lower()}"


# ============================================================================
# Database Tables
# ============================================================================


class OrganizedFile(SQLModel, table=True):
    """
    A file (or directory) organized into a PARA bucket.

    `para_full_path` is derived from `para_bucket` and `para_folder` and must
    be recomputed whenever either of them changes.
    """
    __tablename__ = "organizedfile"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    owner_id: uuid.UUID = Field(index=True, nullable=False)
    base_directory: str | None = Field(default=None, max_length=1024)
    original_relative_path: str = Field(max_length=1024, nullable=False)
    is_directory: bool = False
    is_development: bool = False
    size_bytes: int = 0
    modified_at: str | None = Field(default=None, max_length=64)
    keywords: list[str] | None = Field(default=None, sa_column=Column(JSON))

    korean_file_name: str | None = Field(default=None, max_length=512)
    english_file_name: str | None = Field(default=None, max_length=512)
    para_bucket: str = Field(max_length=20, index=True, nullable=False)
    para_folder: str | None = Field(default=None, max_length=512, index=True)
    para_full_path: str | None = Field(default=None, max_length=1024)
    reason: str | None = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint(
            "owner_id", "original_relative_path",
            name="uq_organizedfile_owner_path"
        ),
    )

    @property
    def display_name(self) -> str | None:
        """Korean name if present, otherwise the English name."""
        if self.korean_file_name and self.korean_file_name.strip():
            return self.korean_file_name
        return self.english_file_name


# ============================================================================
# Request/Response Models (Pydantic)
# ============================================================================


class OrganizedFileEntry(SQLModel):
    """One entry of a bulk save request."""
    original_relative_path: str
    is_directory: bool = False
    is_development: bool = False
    size_bytes: int = 0
    modified_at: str | None = None
    keywords: List[str] | None = None
    korean_file_name: str | None = None
    english_file_name: str | None = None
    para_bucket: str
    para_folder: str | None = None
    reason: str | None = None

    model_config = ConfigDict(extra="forbid")


class OrganizedFileSaveRequest(SQLModel):
    """Request model for saving organized files in bulk."""
    user_id: str
    base_directory: str
    files: List[OrganizedFileEntry] = []

    model_config = ConfigDict(extra="forbid")


class SavedFilePublic(SQLModel):
    """Outcome of one saved entry."""
    id: uuid.UUID
    original_relative_path: str
    korean_file_name: str | None
    english_file_name: str | None
    para_bucket: str
    para_folder: str | None
    operation: Literal["CREATED", "UPDATED"]


class OrganizedFileSaveResponse(SQLModel):
    """Per-item success/failure counts of a bulk save."""
    total_processed: int = 0
    saved_count: int = 0
    updated_count: int = 0
    failed_count: int = 0
    error_messages: List[str] = []
    saved_files: List[SavedFilePublic] = []
    processed_at: datetime


class OrganizedFilePublic(SQLModel):
    """Public representation of an organized file."""
    id: uuid.UUID
    original_relative_path: str
    base_directory: str | None
    is_directory: bool
    is_development: bool
    size_bytes: int
    modified_at: str | None
    keywords: List[str] | None
    korean_file_name: str | None
    english_file_name: str | None
    para_bucket: str
    para_folder: str | None
    para_full_path: str | None
    reason: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FileStatsPublic(SQLModel):
    """Record counts per PARA bucket for one owner."""
    total_files: int
    projects_count: int
    areas_count: int
    resources_count: int
    archive_count: int
    development_count: int
