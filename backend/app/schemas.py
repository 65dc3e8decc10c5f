"""
Pydantic schemas for request and response validation.
"""

from typing import Any

from pydantic import BaseModel, Field

# GitHub login / repository name characters
NAME_PATTERN = r"^[A-Za-z0-9_.-]+$"


class ContextRequest(BaseModel):
    owner: str = Field(min_length=1, max_length=100, pattern=NAME_PATTERN)
    repo: str = Field(min_length=1, max_length=100, pattern=NAME_PATTERN)
    query: str = Field(min_length=1, max_length=2000)
    branch: str | None = Field(default=None, min_length=1, max_length=255)


class ContextResponse(BaseModel):
    owner: str
    repo: str
    branch: str
    query: str
    metadata: dict[str, Any]
    selected_paths: list[str] = Field(default_factory=list)
    files: dict[str, str] = Field(default_factory=dict)


class CacheClearResponse(BaseModel):
    owner: str
    repo: str
    deleted: int


class CacheStatusResponse(BaseModel):
    available: bool
    backend: str
    stats: dict[str, Any]
