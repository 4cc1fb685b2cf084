"""
Services for the Folders API

Folder views are computed on demand from the flat organized file records:
the content browser groups records by their normalized `para_folder`, and the
folder tree groups them by virtual path (see api.folders.paths).
"""

import uuid
from enum import Enum
from typing import Dict, List, Sequence, Tuple
from sqlmodel import Session

from core.logger import logger
from api.folders.models import FileItem, FolderItem, FolderContents, FolderNode
from api.folders.paths import (
    build_folder_pattern,
    build_virtual_path,
    normalize_folder_path,
    title_case,
)
from api.organized.models import OrganizedFile, ParaBucket
from api.organized.services import (
    find_by_owner_and_bucket,
    find_by_owner_and_bucket_and_folder_pattern,
)

COMMON_KEYWORD_LIMIT = 5


class EntryKind(str, Enum):
    """Position of a record relative to a browsed folder"""

    FILE = "file"
    SUBFOLDER = "subfolder"
    NEITHER = "neither"


def classify_folder(item_folder: str, parent_folder: str) -> Tuple[EntryKind, str | None]:
    """
    Classify a record's normalized folder against the browsed folder.

    Returns the kind and, for direct subfolders, the subfolder name.
    The bucket root never holds direct files.
    """
    if not parent_folder:
        if item_folder and "/" not in item_folder:
            return EntryKind.SUBFOLDER, item_folder
        return EntryKind.NEITHER, None

    if item_folder == parent_folder:
        return EntryKind.FILE, None

    if item_folder.startswith(parent_folder + "/"):
        relative_path = item_folder[len(parent_folder) + 1:]
        if relative_path and "/" not in relative_path:
            return EntryKind.SUBFOLDER, relative_path

    return EntryKind.NEITHER, None


class FolderStats:
    """
    Rollup for one direct subfolder.

    Directory records count as subfolders. File records count as files and
    contribute their modification time and keywords. Two rollups can be
    merged in any order with the same result.
    """

    def __init__(self):
        self.file_count = 0
        self.subfolder_count = 0
        self.last_modified: str | None = None
        self.keywords: set[str] = set()

    def add(self, record: OrganizedFile) -> None:
        if record.is_directory:
            self.subfolder_count += 1
            return

        self.file_count += 1
        self._touch(record.modified_at)
        if record.keywords:
            self.keywords.update(record.keywords)

    def merge(self, other: "FolderStats") -> "FolderStats":
        merged = FolderStats()
        merged.file_count = self.file_count + other.file_count
        merged.subfolder_count = self.subfolder_count + other.subfolder_count
        merged._touch(self.last_modified)
        merged._touch(other.last_modified)
        merged.keywords = self.keywords | other.keywords
        return merged

    def common_keywords(self, limit: int = COMMON_KEYWORD_LIMIT) -> List[str]:
        return sorted(self.keywords)[:limit]

    def _touch(self, modified_at: str | None) -> None:
        # Timestamps are opaque strings, compared lexicographically
        if modified_at is not None and (
            self.last_modified is None or modified_at > self.last_modified
        ):
            self.last_modified = modified_at


def _to_file_item(record: OrganizedFile) -> FileItem:
    return FileItem(
        id=record.id,
        korean_file_name=record.korean_file_name,
        english_file_name=record.english_file_name,
        display_name=record.display_name,
        original_relative_path=record.original_relative_path,
        size_bytes=record.size_bytes,
        modified_at=record.modified_at,
        keywords=record.keywords or [],
        reason=record.reason,
        is_directory=record.is_directory,
        is_development=record.is_development,
    )


def get_folder_contents(
    session: Session,
    owner_id: uuid.UUID,
    bucket: ParaBucket,
    folder: str | None,
) -> FolderContents:
    """
    List the direct files and direct subfolders of a folder.

    Candidates are the records whose folder is the target or a descendant of
    it. Files keep storage order; subfolders are sorted by name.
    """
    logger.info("Getting folder contents - user: %s, bucket: %s, folder: '%s'", owner_id, bucket.value, folder)

    normalized_parent = normalize_folder_path(folder, bucket.value)
    pattern = build_folder_pattern(normalized_parent, bucket.value)
    logger.info("Using pattern '%s' (normalized folder '%s')", pattern, normalized_parent)

    items = find_by_owner_and_bucket_and_folder_pattern(session, owner_id, bucket, pattern)
    logger.info("Pattern query returned %d items", len(items))

    files = []
    folder_stats: Dict[str, FolderStats] = {}

    for item in items:
        item_folder = normalize_folder_path(item.para_folder, bucket.value)
        kind, name = classify_folder(item_folder, normalized_parent)
        logger.debug(
            "Item '%s' (folder '%s') classified as %s",
            item.original_relative_path, item_folder, kind.value
        )

        if kind is EntryKind.FILE:
            files.append(_to_file_item(item))
        elif kind is EntryKind.SUBFOLDER:
            folder_stats.setdefault(name, FolderStats()).add(item)

    subfolders = [
        FolderItem(
            folder_name=name,
            full_path=f"{normalized_parent}/{name}" if normalized_parent else name,
            file_count=stats.file_count,
            subfolder_count=stats.subfolder_count,
            last_modified=stats.last_modified,
            common_keywords=stats.common_keywords(),
        )
        for name, stats in folder_stats.items()
    ]
    subfolders.sort(key=lambda x: (x.folder_name.lower(), x.folder_name))

    logger.info(
        "Found %d files, %d subfolders in %s/%s",
        len(files), len(subfolders), bucket.value, normalized_parent
    )

    return FolderContents(
        folder_path=f"{bucket.value}/{normalized_parent}",
        para_bucket=bucket.value,
        para_folder=normalized_parent,
        total_files=len(files),
        total_subfolders=len(subfolders),
        files=files,
        subfolders=subfolders,
    )


def get_folder_breadcrumb(bucket: ParaBucket, folder: str | None) -> List[str]:
    """The bucket followed by each segment of the folder path."""
    breadcrumb = [bucket.value]
    if folder is not None and folder.strip():
        breadcrumb.extend(
            segment.strip() for segment in folder.split("/") if segment.strip()
        )
    return breadcrumb


def _tree_order(record: OrganizedFile):
    """
    Processing order of the folder tree: records with an explicit folder
    first, then by original path and id. First non-blank display name wins
    under this order.
    """
    has_folder = bool(record.para_folder and record.para_folder.strip())
    return (0 if has_folder else 1, record.original_relative_path, str(record.id))


class _TreeNode:
    """Accumulates one child of the folder tree"""

    def __init__(self, key: str):
        self.key = key
        self.display_name: str | None = None
        self.has_children = False
        self.korean_display_name: str | None = None


def get_folder_tree(
    session: Session,
    owner_id: uuid.UUID,
    bucket: ParaBucket,
    path: Sequence[str] | None = None,
) -> List[FolderNode]:
    """
    Returns the children of `path` in the virtual folder tree of a bucket.

    Every record whose virtual path extends past `path` contributes to
    exactly one child: the key right after the prefix.
    """
    prefix = tuple(segment.strip().lower() for segment in (path or []) if segment.strip())
    depth = len(prefix)
    logger.info("Getting folder tree - user: %s, bucket: %s, path: %s", owner_id, bucket.value, "/".join(prefix))

    records = sorted(find_by_owner_and_bucket(session, owner_id, bucket), key=_tree_order)

    nodes: Dict[str, _TreeNode] = {}
    for record in records:
        virtual_path = build_virtual_path(
            record.para_folder,
            record.original_relative_path,
            record.is_directory,
            bucket.value,
        )
        if len(virtual_path.keys) <= depth or not virtual_path.starts_with(prefix):
            continue

        key = virtual_path.keys[depth]
        node = nodes.get(key)
        if node is None:
            node = nodes[key] = _TreeNode(key)

        display = virtual_path.display[depth]
        if node.display_name is None and display and display.strip():
            node.display_name = display

        if len(virtual_path.keys) > depth + 1:
            node.has_children = True
        elif (
            record.is_directory
            and node.korean_display_name is None
            and record.korean_file_name
            and record.korean_file_name.strip()
        ):
            node.korean_display_name = record.korean_file_name

    children = [
        FolderNode(
            display_name=node.display_name or title_case(node.key),
            path_key="/".join(prefix + (node.key,)),
            has_children=node.has_children,
            korean_display_name=node.korean_display_name,
        )
        for node in nodes.values()
    ]
    children.sort(key=lambda x: (x.display_name.lower(), x.path_key))

    logger.info("Folder tree level has %d children", len(children))
    return children
