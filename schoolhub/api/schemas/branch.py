"""Pydantic schemas for Branch API operations."""

from pydantic import BaseModel, Field


class BranchIn(BaseModel):
    """Request body for creating or replacing a branch."""

    name: str | None = Field(default=None, max_length=255, examples=["Downtown"])
    address: str | None = Field(default=None, max_length=1000, examples=["12 Main Street"])
    phone: str | None = Field(default=None, max_length=32, examples=["0281234567"])


class BranchOut(BaseModel):
    """Branch as returned by the API."""

    id: str
    name: str
    address: str | None = None
    phone: str | None = None
