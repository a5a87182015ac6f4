"""Base schema and shared envelope types."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
	"""Serializes with camelCase keys, accepts camelCase or snake_case on input."""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(CamelModel):
	success: bool = False
	error: str
	required: list[str] | None = None
