"""
Pydantic schemas for Teacher API operations.

Input fields are all optional at the parser level: missing or malformed
values are reported by the validation gate with a field-specific reason.
"""

from pydantic import BaseModel, ConfigDict, Field


class TeacherIn(BaseModel):
    """Request body for creating or replacing a teacher."""

    full_name: str | None = Field(
        default=None, max_length=255, description="Teacher's full name", examples=["Alice Nguyen"]
    )
    email: str | None = Field(
        default=None, max_length=255, description="Contact email", examples=["alice@example.com"]
    )
    phone: str | None = Field(
        default=None, max_length=32, description="10-digit phone number", examples=["0123456789"]
    )
    customer_id: str | None = Field(
        default=None, description="Optional id of the customer this teacher serves"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "full_name": "Alice Nguyen",
                    "email": "alice@example.com",
                    "phone": "0123456789",
                    "customer_id": None,
                }
            ]
        }
    )


class TeacherOut(BaseModel):
    """Teacher as returned by the API."""

    id: str
    full_name: str
    email: str
    phone: str
    customer_id: str | None = None
