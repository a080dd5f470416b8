"""
FastAPI routes for Teacher CRUD operations.

Every mutation follows the same sequence: validate the payload, map it to
an entity, then run the repository call inside a transaction scope.
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Path, Response
from fastapi.responses import JSONResponse

from schoolhub.api.schemas import ApiResponse, TeacherIn, TeacherOut
from schoolhub.api.schemas.envelope import data_or_no_content, success
from schoolhub.core.dependencies import Customers, Mapper, Teachers, Transactions
from schoolhub.core.errors import NotFoundError
from schoolhub.db.models import Teacher
from schoolhub.services.validation import validate_teacher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teachers", tags=["Teachers"])

TeacherId = Annotated[uuid.UUID, Path(description="Teacher id")]

_READ_RESPONSES = {200: {"model": ApiResponse}, 204: {"description": "No teacher found"}}
_WRITE_RESPONSES = {
    200: {"model": ApiResponse},
    400: {"model": ApiResponse, "description": "Invalid input"},
}


def _require_teacher(teachers: Teachers, teacher_id: uuid.UUID) -> Teacher:
    teacher = teachers.get_by_id(teacher_id)
    if teacher is None:
        raise NotFoundError("Teacher not found", details={"id": str(teacher_id)})
    return teacher


@router.get("", summary="List all teachers", responses=_READ_RESPONSES)
def list_teachers(teachers: Teachers, mapper: Mapper) -> Response:
    records = teachers.get_all()
    return data_or_no_content(mapper.map_many(records, TeacherOut))


@router.get("/by-name/{name}", summary="Search teachers by name", responses=_READ_RESPONSES)
def search_teachers(
    name: Annotated[str, Path(description="Part of the teacher's full name")],
    teachers: Teachers,
    mapper: Mapper,
) -> Response:
    records = teachers.get_by_name(name)
    return data_or_no_content(mapper.map_many(records, TeacherOut))


@router.get("/{teacher_id}", summary="Get a teacher by id", responses=_READ_RESPONSES)
def get_teacher(teacher_id: TeacherId, teachers: Teachers, mapper: Mapper) -> Response:
    teacher = teachers.get_by_id(teacher_id)
    return data_or_no_content(mapper.map(teacher, TeacherOut) if teacher else None)


@router.post("", summary="Add a teacher", responses=_WRITE_RESPONSES)
def add_teacher(
    payload: TeacherIn,
    teachers: Teachers,
    customers: Customers,
    transactions: Transactions,
    mapper: Mapper,
) -> JSONResponse:
    validate_teacher(payload, customers.get_all_ids).raise_for_failure()

    teacher = mapper.map(payload, Teacher)
    transactions.execute_transaction(lambda: teachers.add(teacher))

    logger.info(f"Added teacher {teacher.id}", extra={"teacher_id": teacher.id})
    return JSONResponse(
        content=success("Add teacher successfully", mapper.map(teacher, TeacherOut))
    )


@router.put(
    "/{teacher_id}",
    summary="Update a teacher",
    responses={**_WRITE_RESPONSES, 404: {"model": ApiResponse}},
)
def update_teacher(
    teacher_id: TeacherId,
    payload: TeacherIn,
    teachers: Teachers,
    customers: Customers,
    transactions: Transactions,
    mapper: Mapper,
) -> JSONResponse:
    validate_teacher(payload, customers.get_all_ids).raise_for_failure()

    teacher = _require_teacher(teachers, teacher_id)
    mapper.map_onto(payload, teacher)
    transactions.execute_transaction(lambda: teachers.update_by_id(teacher, teacher.id))

    logger.info(f"Updated teacher {teacher.id}", extra={"teacher_id": teacher.id})
    return JSONResponse(
        content=success("Update teacher successfully", mapper.map(teacher, TeacherOut))
    )


@router.delete(
    "/{teacher_id}",
    summary="Delete a teacher",
    responses={200: {"model": ApiResponse}, 404: {"model": ApiResponse}},
)
def delete_teacher(
    teacher_id: TeacherId, teachers: Teachers, transactions: Transactions
) -> JSONResponse:
    key = _require_teacher(teachers, teacher_id).id
    transactions.execute_transaction(lambda: teachers.delete_by_id(key))

    logger.info(f"Deleted teacher {key}", extra={"teacher_id": key})
    return JSONResponse(content=success("Delete teacher successfully"))
