from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """JSON bodies use camelCase keys; Python code uses the snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
