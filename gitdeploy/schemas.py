"""Payload schemas"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel


class Repository(BaseModel):
    url: str

    class Config:
        extra = "allow"


class Pusher(BaseModel):
    name: str = ""

    class Config:
        extra = "allow"


class Commit(BaseModel):
    """
    A single commit of a push event.
    Only the fields rendered in notifications are declared.
    """

    message: str = ""
    url: str = ""
    added: List[str] = []
    modified: List[str] = []
    removed: List[str] = []

    class Config:
        extra = "allow"


class PushPayload(BaseModel):
    """Minimal model for a GitHub ``push`` delivery."""

    ref: str
    repository: Repository
    pusher: Pusher = Pusher()
    commits: List[Commit] = []

    class Config:
        extra = "allow"
