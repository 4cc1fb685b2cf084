"""
Services for the Organized Files API.

Storage access for organized file records (owner scoped) and the bulk save,
listing, delete and statistics operations built on it.
"""

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Iterable, List
from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, func, select

from api.folders.paths import normalize_folder_path
from api.organized.models import (
    OrganizedFile,
    OrganizedFileEntry,
    OrganizedFileSaveRequest,
    OrganizedFileSaveResponse,
    SavedFilePublic,
    FileStatsPublic,
    ParaBucket,
    build_para_full_path,
)


logger = logging.getLogger(__name__)


# ============================================================================
# Storage queries
# ============================================================================


def find_by_owner(session: Session, owner_id: uuid.UUID) -> List[OrganizedFile]:
    """All records of an owner."""
    return list(session.exec(
        select(OrganizedFile).where(OrganizedFile.owner_id == owner_id)
    ).all())


def find_by_owner_and_paths(
    session: Session,
    owner_id: uuid.UUID,
    paths: Iterable[str],
) -> List[OrganizedFile]:
    """Records of an owner whose original relative path is in `paths`."""
    paths = [path for path in paths if path is not None]
    if not paths:
        return []
    return list(session.exec(
        select(OrganizedFile)
        .where(OrganizedFile.owner_id == owner_id)
        .where(col(OrganizedFile.original_relative_path).in_(paths))
    ).all())


def find_by_owner_and_bucket(
    session: Session,
    owner_id: uuid.UUID,
    bucket: ParaBucket,
) -> List[OrganizedFile]:
    """All records of an owner in one PARA bucket."""
    return list(session.exec(
        select(OrganizedFile)
        .where(OrganizedFile.owner_id == owner_id)
        .where(OrganizedFile.para_bucket == bucket.value)
    ).all())


def find_by_owner_and_bucket_and_folder(
    session: Session,
    owner_id: uuid.UUID,
    bucket: ParaBucket,
    folder: str,
) -> List[OrganizedFile]:
    """
    Records of an owner whose folder equals `folder`.
    The comparison ignores case and surrounding whitespace.
    """
    return list(session.exec(
        select(OrganizedFile)
        .where(OrganizedFile.owner_id == owner_id)
        .where(OrganizedFile.para_bucket == bucket.value)
        .where(func.lower(func.trim(OrganizedFile.para_folder)) == folder.strip().lower())
    ).all())


def find_by_owner_and_bucket_and_folder_pattern(
    session: Session,
    owner_id: uuid.UUID,
    bucket: ParaBucket,
    pattern: str,
) -> List[OrganizedFile]:
    """
    Records of an owner whose normalized folder matches `pattern`
    (case-insensitive). Records without a folder never match.

    Ordered directories first, then by Korean and English name.
    """
    regex = re.compile(pattern, re.IGNORECASE)
    records = session.exec(
        select(OrganizedFile)
        .where(OrganizedFile.owner_id == owner_id)
        .where(OrganizedFile.para_bucket == bucket.value)
        .where(col(OrganizedFile.para_folder).is_not(None))
        .order_by(
            col(OrganizedFile.is_directory).desc(),
            col(OrganizedFile.korean_file_name).asc(),
            col(OrganizedFile.english_file_name).asc(),
        )
    ).all()

    # Filter by pattern in Python so every database backend behaves the same
    matched = []
    for record in records:
        normalized = normalize_folder_path(record.para_folder, bucket.value)
        if normalized and regex.search(normalized):
            matched.append(record)
    return matched


def upsert_organized_file(session: Session, record: OrganizedFile) -> OrganizedFile:
    """Insert or update a record by identity and commit."""
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


def exists_by_id_and_owner(
    session: Session,
    file_id: uuid.UUID,
    owner_id: uuid.UUID,
) -> bool:
    """True if the record exists and belongs to the owner."""
    count = session.exec(
        select(func.count())
        .select_from(OrganizedFile)
        .where(OrganizedFile.id == file_id)
        .where(OrganizedFile.owner_id == owner_id)
    ).one()
    return count > 0


def delete_by_id(session: Session, file_id: uuid.UUID) -> None:
    """Delete a record by identity."""
    record = session.get(OrganizedFile, file_id)
    if record is not None:
        session.delete(record)
        session.commit()


# ============================================================================
# Bulk save
# ============================================================================


def _validate_save_request(request: OrganizedFileSaveRequest) -> List[str]:
    """Collect request-level validation errors."""
    errors = []

    if not request.user_id or not request.user_id.strip():
        errors.append("user_id is required")
    else:
        try:
            uuid.UUID(request.user_id.strip())
        except ValueError:
            errors.append(f"Invalid user_id format: {request.user_id}")

    if not request.base_directory or not request.base_directory.strip():
        errors.append("base_directory is required")

    if not request.files:
        errors.append("files list cannot be empty")

    for index, entry in enumerate(request.files):
        if not entry.original_relative_path or not entry.original_relative_path.strip():
            errors.append(f"File at index {index}: original_relative_path is required")
        try:
            ParaBucket(entry.para_bucket)
        except ValueError:
            errors.append(f"File at index {index}: unsupported para_bucket '{entry.para_bucket}'")

    return errors


def _entry_to_record(
    request: OrganizedFileSaveRequest,
    entry: OrganizedFileEntry,
    existing: OrganizedFile | None,
    owner_id: uuid.UUID,
) -> OrganizedFile:
    """
    Map a save entry onto a record. An existing record is updated in place
    so that its identity and creation time are carried forward.
    """
    bucket = ParaBucket(entry.para_bucket)
    folder = normalize_folder_path(entry.para_folder, bucket.value) or None

    record = existing if existing is not None else OrganizedFile(
        owner_id=owner_id,
        original_relative_path=entry.original_relative_path,
        para_bucket=bucket.value,
    )
    record.base_directory = request.base_directory
    record.original_relative_path = entry.original_relative_path
    record.is_directory = entry.is_directory
    record.is_development = entry.is_development
    record.size_bytes = entry.size_bytes
    record.modified_at = entry.modified_at
    record.keywords = list(entry.keywords) if entry.keywords is not None else None
    record.korean_file_name = entry.korean_file_name
    record.english_file_name = entry.english_file_name
    record.para_bucket = bucket.value
    record.para_folder = folder
    record.para_full_path = build_para_full_path(bucket.value, folder)
    record.reason = entry.reason
    return record


def save_organized_files(
    session: Session,
    request: OrganizedFileSaveRequest,
) -> OrganizedFileSaveResponse:
    """
    Save or update organized files one by one.

    Each entry is committed on its own; a failing entry is rolled back and
    reported while the remaining entries are still processed.
    """
    logger.info(
        "Saving %d organized files for user %s (base directory: %s)",
        len(request.files), request.user_id, request.base_directory
    )

    errors = _validate_save_request(request)
    if errors:
        return OrganizedFileSaveResponse(
            error_messages=errors,
            processed_at=datetime.now(timezone.utc),
        )

    owner_id = uuid.UUID(request.user_id.strip())

    # Existing records decide between update and create
    existing_by_path = {}
    for record in find_by_owner_and_paths(
        session, owner_id, [entry.original_relative_path for entry in request.files]
    ):
        existing_by_path.setdefault(record.original_relative_path, record)

    saved_files = []
    error_messages = []
    saved_count = 0
    updated_count = 0
    failed_count = 0

    for entry in request.files:
        existing = existing_by_path.get(entry.original_relative_path)
        try:
            record = _entry_to_record(request, entry, existing, owner_id)
            saved = upsert_organized_file(session, record)
        except SQLAlchemyError as e:
            session.rollback()
            failed_count += 1
            message = f"Error processing file '{entry.original_relative_path}': {e}"
            error_messages.append(message)
            logger.error(message)
            continue

        is_update = existing is not None
        if is_update:
            updated_count += 1
        else:
            saved_count += 1

        saved_files.append(
            SavedFilePublic(
                id=saved.id,
                original_relative_path=saved.original_relative_path,
                korean_file_name=saved.korean_file_name,
                english_file_name=saved.english_file_name,
                para_bucket=saved.para_bucket,
                para_folder=saved.para_folder,
                operation="UPDATED" if is_update else "CREATED",
            )
        )
        logger.debug(
            "Successfully %s file: %s",
            "updated" if is_update else "saved",
            entry.original_relative_path
        )

    logger.info(
        "Save completed - Total: %d, Saved: %d, Updated: %d, Failed: %d",
        len(request.files), saved_count, updated_count, failed_count
    )

    return OrganizedFileSaveResponse(
        total_processed=len(request.files),
        saved_count=saved_count,
        updated_count=updated_count,
        failed_count=failed_count,
        error_messages=error_messages,
        saved_files=saved_files,
        processed_at=datetime.now(timezone.utc),
    )


# ============================================================================
# Listing, lookup, delete and stats
# ============================================================================


def get_all_organized_files(session: Session, owner_id: uuid.UUID) -> List[OrganizedFile]:
    """All organized files of an owner."""
    records = find_by_owner(session, owner_id)
    logger.info("Found %d organized files for user %s", len(records), owner_id)
    return records


def get_files_by_bucket(
    session: Session,
    owner_id: uuid.UUID,
    bucket: ParaBucket,
) -> List[OrganizedFile]:
    """Organized files of an owner in one PARA bucket."""
    records = find_by_owner_and_bucket(session, owner_id, bucket)
    logger.info("Found %d organized files for user %s in %s", len(records), owner_id, bucket.value)
    return records


def get_organized_file(
    session: Session,
    owner_id: uuid.UUID,
    file_id: uuid.UUID,
) -> OrganizedFile:
    """
    Returns a single record owned by `owner_id`.
    """
    record = session.get(OrganizedFile, file_id)
    if record is None or record.owner_id != owner_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"File {file_id} not found."
        )
    return record


def delete_organized_file(
    session: Session,
    owner_id: uuid.UUID,
    file_id: uuid.UUID,
) -> None:
    """Delete a record owned by `owner_id`."""
    if not exists_by_id_and_owner(session, file_id, owner_id):
        logger.warning("File not found or not owned by user: %s, %s", owner_id, file_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"File {file_id} not found."
        )

    delete_by_id(session, file_id)
    logger.info("Deleted file %s of user %s", file_id, owner_id)


def get_file_stats(session: Session, owner_id: uuid.UUID) -> FileStatsPublic:
    """Count an owner's records per bucket."""
    rows = session.exec(
        select(OrganizedFile.para_bucket, func.count())
        .where(OrganizedFile.owner_id == owner_id)
        .group_by(OrganizedFile.para_bucket)
    ).all()
    per_bucket = {bucket: count for bucket, count in rows}

    development_count = session.exec(
        select(func.count())
        .select_from(OrganizedFile)
        .where(OrganizedFile.owner_id == owner_id)
        .where(OrganizedFile.is_development == True)  # noqa: E712
    ).one()

    return FileStatsPublic(
        total_files=sum(per_bucket.values()),
        projects_count=per_bucket.get(ParaBucket.PROJECTS.value, 0),
        areas_count=per_bucket.get(ParaBucket.AREAS.value, 0),
        resources_count=per_bucket.get(ParaBucket.RESOURCES.value, 0),
        archive_count=per_bucket.get(ParaBucket.ARCHIVE.value, 0),
        development_count=development_count,
    )
