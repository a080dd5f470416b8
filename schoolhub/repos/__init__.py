"""
Repository layer for data access operations.

This package contains the generic entity store and repository façade, and
one repository per domain entity.
"""

from schoolhub.repos.branch_repo import BranchRepository
from schoolhub.repos.customer_repo import CustomerRepository
from schoolhub.repos.generic_repo import Repository
from schoolhub.repos.store import EntityStore, Predicate
from schoolhub.repos.teacher_repo import TeacherRepository

__all__ = [
    "BranchRepository",
    "CustomerRepository",
    "EntityStore",
    "Predicate",
    "Repository",
    "TeacherRepository",
]
