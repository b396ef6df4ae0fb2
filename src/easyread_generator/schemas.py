from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .contracts import TransformResult


class TransformResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str
    easy_read: str = Field(alias="easyRead")


def make_transform_response(result: TransformResult) -> TransformResponse:
    return TransformResponse(summary=result.summary, easy_read=result.easy_read)


class ErrorResponse(BaseModel):
    error: str


def make_error_response(message: str) -> dict[str, str]:
    return ErrorResponse(error=message).model_dump()
