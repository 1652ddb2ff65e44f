"""Shared schema base and the error envelope."""

from typing import Any

from humps import camelize
from pydantic import BaseModel, ConfigDict


class CamelModel(BaseModel):
    """Fields are snake_case in Python and camelCase on the wire.

    Stored documents already use camelCase keys, so a document dict
    validates straight into a response model.
    """

    model_config = ConfigDict(
        alias_generator=camelize,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: dict[str, Any] = {}


class ErrorResponse(BaseModel):
    """Body of every error raised through the global exception handlers."""

    error: ErrorDetail


# OpenAPI ``responses`` entry for routes that can 404
NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "Document not found"}}
