"""Response envelope shared by every resource endpoint."""

from typing import Any

from fastapi import Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ApiResponse(BaseModel):
    """`{status, message, data?}` envelope; `data` is left out when there is none."""

    status: bool
    message: str
    data: Any = None


def success(message: str, data: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"status": True, "message": message}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    return body


def failure(message: str) -> dict[str, Any]:
    return {"status": False, "message": message}


def data_or_no_content(data: Any, message: str = "Get data successfully") -> Response:
    """200 with the envelope when there is data, 204 for None or an empty list."""
    if data is None or data == []:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return JSONResponse(content=success(message, data))
