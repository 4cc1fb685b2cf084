"""
Owner and bucket dependencies for dependency injection
"""

import uuid
from typing import Annotated
from fastapi import Depends, HTTPException, status

from api.organized.models import ParaBucket


def parse_owner_id(user_id: str | None) -> uuid.UUID:
    """
    Parse an owner identity, rejecting malformed values.

    Raises:
        HTTPException: 400 if the value is blank or not a UUID
    """
    if user_id is None or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="userId is required"
        )
    try:
        return uuid.UUID(user_id.strip())
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid userId format: {user_id}"
        ) from e


def parse_bucket(para_bucket: str | None) -> ParaBucket:
    """
    Parse a PARA bucket name case-insensitively.

    Raises:
        HTTPException: 400 if the bucket is not one of the four PARA buckets
    """
    try:
        return ParaBucket(para_bucket)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported PARA bucket: {para_bucket}"
        ) from e


def get_validated_owner(user_id: str) -> uuid.UUID:
    """Dependency that validates the `user_id` parameter."""
    return parse_owner_id(user_id)


def get_validated_bucket(para_bucket: str) -> ParaBucket:
    """Dependency that validates the `para_bucket` parameter."""
    return parse_bucket(para_bucket)


# Type aliases for clean usage in route signatures
OwnerDep = Annotated[uuid.UUID, Depends(get_validated_owner)]
BucketDep = Annotated[ParaBucket, Depends(get_validated_bucket)]
