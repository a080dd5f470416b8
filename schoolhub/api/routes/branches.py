"""FastAPI routes for Branch CRUD operations."""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Path, Response
from fastapi.responses import JSONResponse

from schoolhub.api.schemas import ApiResponse, BranchIn, BranchOut
from schoolhub.api.schemas.envelope import data_or_no_content, success
from schoolhub.core.dependencies import Branches, Customers, Mapper, Transactions
from schoolhub.core.errors import NotFoundError
from schoolhub.db.models import Branch
from schoolhub.services.validation import validate_branch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/branches", tags=["Branches"])

BranchId = Annotated[uuid.UUID, Path(description="Branch id")]

_READ_RESPONSES = {200: {"model": ApiResponse}, 204: {"description": "No branch found"}}
_WRITE_RESPONSES = {
    200: {"model": ApiResponse},
    400: {"model": ApiResponse, "description": "Invalid input"},
}


def _require_branch(branches: Branches, branch_id: uuid.UUID) -> Branch:
    branch = branches.get_by_id(branch_id)
    if branch is None:
        raise NotFoundError("Branch not found", details={"id": str(branch_id)})
    return branch


@router.get("", summary="List all branches", responses=_READ_RESPONSES)
def list_branches(branches: Branches, mapper: Mapper) -> Response:
    return data_or_no_content(mapper.map_many(branches.get_all(), BranchOut))


@router.get("/by-name/{name}", summary="Search branches by name", responses=_READ_RESPONSES)
def search_branches(
    name: Annotated[str, Path(description="Part of the branch name")],
    branches: Branches,
    mapper: Mapper,
) -> Response:
    return data_or_no_content(mapper.map_many(branches.get_by_name(name), BranchOut))


@router.get("/{branch_id}", summary="Get a branch by id", responses=_READ_RESPONSES)
def get_branch(branch_id: BranchId, branches: Branches, mapper: Mapper) -> Response:
    branch = branches.get_by_id(branch_id)
    return data_or_no_content(mapper.map(branch, BranchOut) if branch else None)


@router.post("", summary="Add a branch", responses=_WRITE_RESPONSES)
def add_branch(
    payload: BranchIn, branches: Branches, transactions: Transactions, mapper: Mapper
) -> JSONResponse:
    validate_branch(payload).raise_for_failure()

    branch = mapper.map(payload, Branch)
    transactions.execute_transaction(lambda: branches.add(branch))

    logger.info(f"Added branch {branch.id}", extra={"branch_id": branch.id})
    return JSONResponse(content=success("Add branch successfully", mapper.map(branch, BranchOut)))


@router.put(
    "/{branch_id}",
    summary="Update a branch",
    responses={**_WRITE_RESPONSES, 404: {"model": ApiResponse}},
)
def update_branch(
    branch_id: BranchId,
    payload: BranchIn,
    branches: Branches,
    transactions: Transactions,
    mapper: Mapper,
) -> JSONResponse:
    validate_branch(payload).raise_for_failure()

    branch = _require_branch(branches, branch_id)
    mapper.map_onto(payload, branch)
    transactions.execute_transaction(lambda: branches.update_by_id(branch, branch.id))

    logger.info(f"Updated branch {branch.id}", extra={"branch_id": branch.id})
    return JSONResponse(
        content=success("Update branch successfully", mapper.map(branch, BranchOut))
    )


@router.delete(
    "/{branch_id}",
    summary="Delete a branch",
    description="Customers attached to the branch are kept and detached.",
    responses={200: {"model": ApiResponse}, 404: {"model": ApiResponse}},
)
def delete_branch(
    branch_id: BranchId,
    branches: Branches,
    customers: Customers,
    transactions: Transactions,
) -> JSONResponse:
    key = _require_branch(branches, branch_id).id

    def unit_of_work() -> int:
        detached = customers.detach_branch(key)
        branches.delete_by_id(key)
        return detached

    detached = transactions.execute_transaction(unit_of_work)

    logger.info(
        f"Deleted branch {key}",
        extra={"branch_id": key, "customers_detached": detached},
    )
    return JSONResponse(content=success("Delete branch successfully"))
