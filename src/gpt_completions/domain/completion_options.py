"""Sampling options for completion requests and their layered merge."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

PositiveInt = Annotated[int, Field(gt=0)]
TemperatureFloat = Annotated[float, Field(ge=0.0, le=2.0)]
ProbabilityFloat = Annotated[float, Field(ge=0.0, le=1.0)]


class CompletionOptions(BaseModel):
    """Sampling parameters sent with every completion request.

    Field defaults are the built-in layer. An instance used as an override
    layer only contributes the fields that were explicitly set on it.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_tokens: PositiveInt = 100
    temperature: TemperatureFloat = 0.0
    n: PositiveInt = 1
    top_p: ProbabilityFloat = 1.0
    stop: tuple[str, ...] | None = None


OptionsInput = CompletionOptions | Mapping[str, Any] | None


def coerce_options(options: OptionsInput) -> CompletionOptions:
    """Return an override layer from a model, a mapping of fields, or nothing."""

    if options is None:
        return CompletionOptions()
    if isinstance(options, CompletionOptions):
        return options
    return CompletionOptions.model_validate(dict(options))


def merge_completion_options(*layers: OptionsInput) -> CompletionOptions:
    """Merge override layers over the defaults, later layers winning per field."""

    merged: dict[str, Any] = {}
    for layer in layers:
        merged.update(coerce_options(layer).model_dump(exclude_unset=True))
    return CompletionOptions.model_validate(merged)
