"""FastAPI routes for Customer CRUD operations."""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Path, Response
from fastapi.responses import JSONResponse

from schoolhub.api.schemas import ApiResponse, CustomerIn, CustomerOut
from schoolhub.api.schemas.envelope import data_or_no_content, success
from schoolhub.core.dependencies import Branches, Customers, Mapper, Teachers, Transactions
from schoolhub.core.errors import NotFoundError
from schoolhub.db.models import Customer
from schoolhub.services.validation import validate_customer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["Customers"])

CustomerId = Annotated[uuid.UUID, Path(description="Customer id")]

_READ_RESPONSES = {200: {"model": ApiResponse}, 204: {"description": "No customer found"}}
_WRITE_RESPONSES = {
    200: {"model": ApiResponse},
    400: {"model": ApiResponse, "description": "Invalid input"},
}


def _require_customer(customers: Customers, customer_id: uuid.UUID) -> Customer:
    customer = customers.get_by_id(customer_id)
    if customer is None:
        raise NotFoundError("Customer not found", details={"id": str(customer_id)})
    return customer


@router.get("", summary="List all customers", responses=_READ_RESPONSES)
def list_customers(customers: Customers, mapper: Mapper) -> Response:
    return data_or_no_content(mapper.map_many(customers.get_all(), CustomerOut))


@router.get("/by-name/{name}", summary="Search customers by name", responses=_READ_RESPONSES)
def search_customers(
    name: Annotated[str, Path(description="Part of the customer's full name")],
    customers: Customers,
    mapper: Mapper,
) -> Response:
    return data_or_no_content(mapper.map_many(customers.get_by_name(name), CustomerOut))


@router.get("/{customer_id}", summary="Get a customer by id", responses=_READ_RESPONSES)
def get_customer(customer_id: CustomerId, customers: Customers, mapper: Mapper) -> Response:
    customer = customers.get_by_id(customer_id)
    return data_or_no_content(mapper.map(customer, CustomerOut) if customer else None)


@router.post("", summary="Add a customer", responses=_WRITE_RESPONSES)
def add_customer(
    payload: CustomerIn,
    customers: Customers,
    branches: Branches,
    transactions: Transactions,
    mapper: Mapper,
) -> JSONResponse:
    validate_customer(payload, branches.get_all_ids).raise_for_failure()

    customer = mapper.map(payload, Customer)
    transactions.execute_transaction(lambda: customers.add(customer))

    logger.info(f"Added customer {customer.id}", extra={"customer_id": customer.id})
    return JSONResponse(
        content=success("Add customer successfully", mapper.map(customer, CustomerOut))
    )


@router.put(
    "/{customer_id}",
    summary="Update a customer",
    responses={**_WRITE_RESPONSES, 404: {"model": ApiResponse}},
)
def update_customer(
    customer_id: CustomerId,
    payload: CustomerIn,
    customers: Customers,
    branches: Branches,
    transactions: Transactions,
    mapper: Mapper,
) -> JSONResponse:
    validate_customer(payload, branches.get_all_ids).raise_for_failure()

    customer = _require_customer(customers, customer_id)
    mapper.map_onto(payload, customer)
    transactions.execute_transaction(lambda: customers.update_by_id(customer, customer.id))

    logger.info(f"Updated customer {customer.id}", extra={"customer_id": customer.id})
    return JSONResponse(
        content=success("Update customer successfully", mapper.map(customer, CustomerOut))
    )


@router.delete(
    "/{customer_id}",
    summary="Delete a customer",
    description="Teachers assigned to the customer are kept and unassigned.",
    responses={200: {"model": ApiResponse}, 404: {"model": ApiResponse}},
)
def delete_customer(
    customer_id: CustomerId,
    customers: Customers,
    teachers: Teachers,
    transactions: Transactions,
) -> JSONResponse:
    key = _require_customer(customers, customer_id).id

    def unit_of_work() -> int:
        detached = teachers.detach_customer(key)
        customers.delete_by_id(key)
        return detached

    detached = transactions.execute_transaction(unit_of_work)

    logger.info(
        f"Deleted customer {key}",
        extra={"customer_id": key, "teachers_detached": detached},
    )
    return JSONResponse(content=success("Delete customer successfully"))
