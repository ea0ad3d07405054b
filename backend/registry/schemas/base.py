"""camelCase wire models.

Python code stays snake_case; request and response JSON is camelCase.
Both spellings are accepted on input.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CamelORMModel(CamelModel):
    """Response model that can also be read straight off an ORM row."""
    model_config = ConfigDict(from_attributes=True)
