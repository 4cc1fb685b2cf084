"""
Routes/endpoints for the Folder Restructure API

HTTP   URI                                   Action
----   ---                                   ------
POST   /api/v1/folders/analyze-structure     Suggest folder merges for a bucket
POST   /api/v1/folders/apply-merge           Apply a merge suggestion
"""

from fastapi import APIRouter, status
from core.deps import SessionDep
from api.organized.deps import OwnerDep, BucketDep, parse_bucket, parse_owner_id
from api.restructure.models import (
    FolderRestructureRequest,
    FolderRestructureResponse,
    MergeResult,
    MergeSuggestion,
)
from api.restructure import services

router = APIRouter(prefix="/folders", tags=["Folder Restructure Endpoints"])


@router.post(
    "/analyze-structure",
    response_model=FolderRestructureResponse,
    status_code=status.HTTP_200_OK,
    tags=["Folder Restructure Endpoints"],
)
async def analyze_structure(
    session: SessionDep,
    request: FolderRestructureRequest,
) -> FolderRestructureResponse:
    """
    Analyze the folders of a PARA bucket and suggest merges.
    """
    return await services.analyze_folder_structure(
        session=session,
        owner_id=parse_owner_id(request.user_id),
        bucket=parse_bucket(request.para_bucket),
    )


@router.post(
    "/apply-merge",
    response_model=MergeResult,
    status_code=status.HTTP_200_OK,
    tags=["Folder Restructure Endpoints"],
)
def apply_merge(
    session: SessionDep,
    owner_id: OwnerDep,
    bucket: BucketDep,
    suggestion: MergeSuggestion,
) -> MergeResult:
    """
    Move the files of the suggested source folders into one folder.
    """
    return services.apply_folder_merge(
        session=session,
        owner_id=owner_id,
        bucket=bucket,
        suggestion=suggestion,
    )
