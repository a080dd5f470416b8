"""Pydantic transport models for the SchoolHub API."""

from schoolhub.api.schemas.branch import BranchIn, BranchOut
from schoolhub.api.schemas.customer import CustomerIn, CustomerOut
from schoolhub.api.schemas.envelope import ApiResponse
from schoolhub.api.schemas.teacher import TeacherIn, TeacherOut

__all__ = [
    "ApiResponse",
    "BranchIn",
    "BranchOut",
    "CustomerIn",
    "CustomerOut",
    "TeacherIn",
    "TeacherOut",
]
