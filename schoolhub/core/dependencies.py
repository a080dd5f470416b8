"""
FastAPI dependency injection utilities.

Every dependency below resolves against the same per-request session, so
repositories obtained in one endpoint share the executor's transaction.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from schoolhub.core.db import get_db_session
from schoolhub.core.mapping import EntityMapper, get_mapper
from schoolhub.core.transaction import TransactionExecutor
from schoolhub.repos import BranchRepository, CustomerRepository, TeacherRepository

DbSession = Annotated[Session, Depends(get_db_session)]


def get_transaction_executor(db: DbSession) -> TransactionExecutor:
    return TransactionExecutor(db)


def get_teacher_repository(db: DbSession) -> TeacherRepository:
    return TeacherRepository(db)


def get_customer_repository(db: DbSession) -> CustomerRepository:
    return CustomerRepository(db)


def get_branch_repository(db: DbSession) -> BranchRepository:
    return BranchRepository(db)


Transactions = Annotated[TransactionExecutor, Depends(get_transaction_executor)]
Teachers = Annotated[TeacherRepository, Depends(get_teacher_repository)]
Customers = Annotated[CustomerRepository, Depends(get_customer_repository)]
Branches = Annotated[BranchRepository, Depends(get_branch_repository)]
Mapper = Annotated[EntityMapper, Depends(get_mapper)]
