"""Base model shared by everything that crosses the HTTP boundary."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake-case in Python, camelCase on the wire.

    Input accepts either spelling; ``model_dump(by_alias=True)`` and FastAPI
    responses emit camelCase.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
