"""
Services for the Folder Restructure API

Folders of one bucket are profiled and handed to the merge suggestion
service. An accepted suggestion is applied by moving every record of the
source folders into the suggested folder.
"""

import logging
import uuid
from typing import Awaitable, Callable, Dict, List
from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from api.folders.paths import normalize_folder_path
from api.organized.models import OrganizedFile, ParaBucket, build_para_full_path
from api.organized.services import (
    find_by_owner_and_bucket,
    find_by_owner_and_bucket_and_folder,
    upsert_organized_file,
)
from api.restructure.models import (
    FolderAnalysis,
    FolderRestructureResponse,
    MergeResult,
    MergeSuggestion,
)
from api.restructure.suggestions import request_merge_suggestions

logger = logging.getLogger(__name__)

PROFILE_SAMPLE_LIMIT = 5

NOT_ENOUGH_FOLDERS_REASON = "폴더가 충분하지 않아 통합 제안을 할 수 없습니다."
ANALYSIS_FAILED_REASON = "폴더 구조 분석 중 오류가 발생했습니다: "

SuggestFn = Callable[[List[FolderAnalysis], str], Awaitable[FolderRestructureResponse]]


def infer_folder_purpose(
    folder_name: str,
    keywords: List[str],
    file_count: int,
    subfolder_count: int,
) -> str:
    """
    One-line description of a folder.

    >>> infer_folder_purpose("notes", ["memo"], 2, 0)
    '폴더명: notes, 파일 2개, 하위폴더 0개 | 주요키워드: memo'
    """
    purpose = f"폴더명: {folder_name}, 파일 {file_count}개, 하위폴더 {subfolder_count}개"
    if keywords:
        purpose += f" | 주요키워드: {', '.join(keywords)}"
    return purpose


def build_folder_analysis(folder_name: str, records: List[OrganizedFile]) -> FolderAnalysis:
    """
    Profile one folder. Sample names and keywords come from file records
    only, in encounter order.
    """
    file_count = 0
    subfolder_count = 0
    sample_file_names = []
    common_keywords = []

    for record in records:
        if record.is_directory:
            subfolder_count += 1
            continue

        file_count += 1
        if len(sample_file_names) < PROFILE_SAMPLE_LIMIT:
            name = record.display_name
            if name is not None:
                sample_file_names.append(name)

        for keyword in record.keywords or []:
            if len(common_keywords) >= PROFILE_SAMPLE_LIMIT:
                break
            if keyword not in common_keywords:
                common_keywords.append(keyword)

    return FolderAnalysis(
        folder_name=folder_name,
        file_count=file_count,
        subfolder_count=subfolder_count,
        sample_file_names=sample_file_names,
        common_keywords=common_keywords,
        folder_purpose=infer_folder_purpose(
            folder_name, common_keywords, file_count, subfolder_count
        ),
    )


def analyze_folders_by_bucket(
    session: Session,
    owner_id: uuid.UUID,
    bucket: ParaBucket,
) -> List[FolderAnalysis]:
    """Profile every folder of a bucket, in folder name order."""
    records = sorted(
        find_by_owner_and_bucket(session, owner_id, bucket),
        key=lambda x: (x.original_relative_path, str(x.id)),
    )

    groups: Dict[str, List[OrganizedFile]] = {}
    for record in records:
        if record.para_folder is None or not record.para_folder.strip():
            continue
        groups.setdefault(record.para_folder, []).append(record)

    analyses = [
        build_folder_analysis(folder_name, groups[folder_name])
        for folder_name in sorted(groups)
    ]
    logger.info("Analyzed %d folders in bucket %s", len(analyses), bucket.value)
    return analyses


async def analyze_folder_structure(
    session: Session,
    owner_id: uuid.UUID,
    bucket: ParaBucket,
    suggest: SuggestFn | None = None,
) -> FolderRestructureResponse:
    """
    Ask for merge suggestions across the folders of a bucket.

    A bucket with fewer than two folders gets no suggestions. A failing
    suggestion service is reported in `reason` with no suggestions.
    """
    logger.info("Starting folder structure analysis - user: %s, bucket: %s", owner_id, bucket.value)

    analyses = analyze_folders_by_bucket(session, owner_id, bucket)
    if len(analyses) < 2:
        logger.info("Not enough folders to suggest merging")
        return FolderRestructureResponse(merge_suggestions=[], reason=NOT_ENOUGH_FOLDERS_REASON)

    suggest = suggest or request_merge_suggestions
    try:
        response = await suggest(analyses, bucket.value)
    except Exception as e:
        logger.exception("Failed to get folder restructure suggestions: %s", e)
        return FolderRestructureResponse(
            merge_suggestions=[],
            reason=f"{ANALYSIS_FAILED_REASON}{e}",
        )

    logger.info("Received %d folder restructure suggestions", len(response.merge_suggestions))
    return response


def apply_folder_merge(
    session: Session,
    owner_id: uuid.UUID,
    bucket: ParaBucket,
    suggestion: MergeSuggestion,
) -> MergeResult:
    """
    Move every record of the source folders into the suggested folder.

    Records are committed one by one. On a storage failure the records moved
    so far stay moved and a 500 reports how many there were.

    Raises:
        HTTPException: 400 for a blank name or no source folders, 500 on a
            storage failure
    """
    target_folder = normalize_folder_path(suggestion.suggested_name, bucket.value)
    if not target_folder:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="suggested_name is required"
        )

    # Distinct non-blank sources, normalized like stored folders
    source_folders = []
    for source_folder in suggestion.source_folders:
        folder = normalize_folder_path(source_folder, bucket.value)
        if folder and folder not in source_folders:
            source_folders.append(folder)

    if not source_folders:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="source_folders must not be empty"
        )

    target_full_path = build_para_full_path(bucket.value, target_folder)
    logger.info(
        "Applying folder restructure - user: %s, bucket: %s, merging %d folders into '%s'",
        owner_id, bucket.value, len(source_folders), target_folder
    )

    moved_count = 0
    for source_folder in source_folders:
        records = find_by_owner_and_bucket_and_folder(session, owner_id, bucket, source_folder)
        for record in records:
            record.para_folder = target_folder
            record.para_full_path = target_full_path
            try:
                upsert_organized_file(session, record)
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(
                    "Failed to move '%s' into '%s' after %d records: %s",
                    record.original_relative_path, target_folder, moved_count, e
                )
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=(
                        f"Folder merge failed after moving {moved_count} records "
                        f"into '{target_folder}'"
                    )
                ) from e
            moved_count += 1

        logger.info("Moved %d files from folder '%s' to '%s'", len(records), source_folder, target_folder)

    message = (
        f"폴더 재구성이 완료되었습니다. {len(source_folders)}개 폴더가 "
        f"'{suggestion.suggested_name}'로 통합되었습니다."
    )
    return MergeResult(
        message=message,
        moved_count=moved_count,
        source_folders=source_folders,
        suggested_name=target_folder,
        para_full_path=target_full_path,
    )
