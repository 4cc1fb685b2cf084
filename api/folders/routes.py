"""
Routes/endpoints for the Folders API

HTTP   URI                                   Action
----   ---                                   ------
GET    /api/v1/folders/browse                Direct files and subfolders of a folder
GET    /api/v1/folders/breadcrumb            Breadcrumb segments of a folder
GET    /api/v1/folders/tree                  Children of a virtual folder tree node
"""

from typing import List
from fastapi import APIRouter, Query, status
from core.deps import SessionDep
from api.organized.deps import OwnerDep, BucketDep
from api.folders.models import FolderContents, FolderNode
from api.folders.paths import normalize_segments
from api.folders import services

router = APIRouter(prefix="/folders", tags=["Folder Endpoints"])


@router.get(
    "/browse",
    response_model=FolderContents,
    status_code=status.HTTP_200_OK,
    tags=["Folder Endpoints"],
)
def browse_folder_contents(
    session: SessionDep,
    owner_id: OwnerDep,
    bucket: BucketDep,
    para_folder: str = Query("", description="Folder path, empty for the bucket root"),
) -> FolderContents:
    """
    Browse the direct files and subfolders of a folder in a PARA bucket.
    """
    return services.get_folder_contents(
        session=session,
        owner_id=owner_id,
        bucket=bucket,
        folder=para_folder,
    )


@router.get(
    "/breadcrumb",
    response_model=List[str],
    status_code=status.HTTP_200_OK,
    tags=["Folder Endpoints"],
)
def get_folder_breadcrumb(
    bucket: BucketDep,
    para_folder: str = Query("", description="Folder path, empty for the bucket root"),
) -> List[str]:
    """
    Breadcrumb for a folder: the bucket followed by each folder segment.
    """
    return services.get_folder_breadcrumb(bucket=bucket, folder=para_folder)


@router.get(
    "/tree",
    response_model=List[FolderNode],
    status_code=status.HTTP_200_OK,
    tags=["Folder Endpoints"],
)
def get_folder_tree(
    session: SessionDep,
    owner_id: OwnerDep,
    bucket: BucketDep,
    path: str = Query("", description="Slash-delimited node path, empty for the bucket root"),
) -> List[FolderNode]:
    """
    Children of a node in the virtual folder tree of a bucket.
    """
    return services.get_folder_tree(
        session=session,
        owner_id=owner_id,
        bucket=bucket,
        path=normalize_segments(path, bucket.value),
    )
