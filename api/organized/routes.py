"""
Routes/endpoints for the Organized Files API

HTTP   URI                                                           Action
----   ---                                                           ------
POST   /api/v1/organized-files/save-direct                           Save or update organized files in bulk
GET    /api/v1/organized-files/user/{user_id}                        List all files of a user
GET    /api/v1/organized-files/user/{user_id}/bucket/{para_bucket}   List the files of a user in a PARA bucket
GET    /api/v1/organized-files/user/{user_id}/stats                  Count the files of a user per bucket
GET    /api/v1/organized-files/user/{user_id}/file/{file_id}         Retrieve one file
DELETE /api/v1/organized-files/user/{user_id}/file/{file_id}         Delete one file
"""

import uuid
from typing import List
from fastapi import APIRouter, status
from core.deps import SessionDep
from api.organized.deps import OwnerDep, BucketDep
from api.organized.models import (
    OrganizedFilePublic,
    OrganizedFileSaveRequest,
    OrganizedFileSaveResponse,
    FileStatsPublic,
)
from api.organized import services

router = APIRouter(prefix="/organized-files", tags=["Organized File Endpoints"])


@router.post(
    "/save-direct",
    response_model=OrganizedFileSaveResponse,
    status_code=status.HTTP_200_OK,
    tags=["Organized File Endpoints"],
)
def save_organized_files(
    session: SessionDep,
    request: OrganizedFileSaveRequest,
) -> OrganizedFileSaveResponse:
    """
    Save organized files one by one. Failures are reported per file.
    """
    return services.save_organized_files(session=session, request=request)


@router.get(
    "/user/{user_id}",
    response_model=List[OrganizedFilePublic],
    tags=["Organized File Endpoints"],
)
def get_user_files(session: SessionDep, owner_id: OwnerDep) -> List[OrganizedFilePublic]:
    """
    Retrieve all organized files of a user.
    """
    return services.get_all_organized_files(session, owner_id)


@router.get(
    "/user/{user_id}/bucket/{para_bucket}",
    response_model=List[OrganizedFilePublic],
    tags=["Organized File Endpoints"],
)
def get_user_files_by_bucket(
    session: SessionDep,
    owner_id: OwnerDep,
    bucket: BucketDep,
) -> List[OrganizedFilePublic]:
    """
    Retrieve the organized files of a user in one PARA bucket.
    """
    return services.get_files_by_bucket(session, owner_id, bucket)


@router.get(
    "/user/{user_id}/stats",
    response_model=FileStatsPublic,
    tags=["Organized File Endpoints"],
)
def get_user_file_stats(session: SessionDep, owner_id: OwnerDep) -> FileStatsPublic:
    """
    Count the organized files of a user per PARA bucket.
    """
    return services.get_file_stats(session, owner_id)


@router.get(
    "/user/{user_id}/file/{file_id}",
    response_model=OrganizedFilePublic,
    tags=["Organized File Endpoints"],
)
def get_user_file(
    session: SessionDep,
    owner_id: OwnerDep,
    file_id: uuid.UUID,
) -> OrganizedFilePublic:
    """
    Retrieve one organized file owned by the user.
    """
    return services.get_organized_file(session, owner_id, file_id)


@router.delete(
    "/user/{user_id}/file/{file_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Organized File Endpoints"],
)
def delete_user_file(
    session: SessionDep,
    owner_id: OwnerDep,
    file_id: uuid.UUID,
) -> None:
    """
    Delete one organized file owned by the user.
    """
    services.delete_organized_file(session, owner_id, file_id)
