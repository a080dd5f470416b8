"""Pydantic schemas for Customer API operations."""

from pydantic import BaseModel, Field


class CustomerIn(BaseModel):
    """Request body for creating or replacing a customer."""

    full_name: str | None = Field(default=None, max_length=255, examples=["Binh Tran"])
    email: str | None = Field(default=None, max_length=255, examples=["binh@example.com"])
    phone: str | None = Field(default=None, max_length=32, examples=["0987654321"])
    branch_id: str | None = Field(
        default=None, description="Optional id of the branch the customer belongs to"
    )


class CustomerOut(BaseModel):
    """Customer as returned by the API."""

    id: str
    full_name: str
    email: str
    phone: str
    branch_id: str | None = None
