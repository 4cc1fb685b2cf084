"""
Models for the Folder Restructure API
"""

from typing import List
from sqlmodel import SQLModel
from pydantic import ConfigDict


class FolderAnalysis(SQLModel):
    """Descriptive profile of one folder, handed to the suggestion service"""

    folder_name: str
    file_count: int = 0
    subfolder_count: int = 0
    sample_file_names: List[str] = []  # up to 5, Korean names first
    common_keywords: List[str] = []  # up to 5
    folder_purpose: str = ""


class FolderRestructureRequest(SQLModel):
    """Request model for analyzing the folders of a bucket"""

    user_id: str
    para_bucket: str

    model_config = ConfigDict(extra="forbid")


class MergeSuggestion(SQLModel):
    """Merge `source_folders` into one folder named `suggested_name`"""

    target_folder: str | None = None
    source_folders: List[str]
    suggested_name: str
    rationale: str | None = None


class FolderRestructureResponse(SQLModel):
    """Merge suggestions with an overall reason"""

    merge_suggestions: List[MergeSuggestion] = []
    reason: str = ""


class MergeResult(SQLModel):
    """Outcome of applying a merge suggestion"""

    message: str
    moved_count: int
    source_folders: List[str]
    suggested_name: str
    para_full_path: str | None
