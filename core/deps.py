"""
Define functions/aliases for dependency injection
"""
from collections.abc import Generator
from typing import Annotated, TypeAlias
from sqlmodel import Session
from fastapi import Depends

from core.db import get_session

# Define db dependency
def get_db() -> Generator[Session, None, None]:
  yield from get_session()

SessionDep: TypeAlias = Annotated[Session, Depends(get_db)]
