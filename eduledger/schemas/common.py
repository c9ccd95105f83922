# eduledger/schemas/common.py
"""Shared Pydantic bases: camelCase on the wire, snake_case in Python."""
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RequestSchema(BaseModel):
    """Inbound payloads. Unknown fields are rejected at the boundary."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )


class ResponseSchema(BaseModel):
    """Outbound payloads, built from ORM rows."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class BulkRowError(ResponseSchema):
    index: int
    student_id: Optional[str] = None
    reason: str


class MessageResponse(ResponseSchema):
    message: str
