"""Strict schema baselines with forbidden extras and camelCase aliases."""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel


# Money stays Decimal in Python and becomes a JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class StrictModel(BaseModel):
    """Neutral strict base for response DTOs. Serialises with camelCase keys."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class StrictRequestModel(StrictModel):
    """Request DTO base. Inherits the strict config and trims string input."""

    model_config = ConfigDict(str_strip_whitespace=True)
