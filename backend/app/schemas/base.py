from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON keys are camelCase; field names are accepted on input as well."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class RequestModel(CamelModel):
    """Request body. Unknown keys are a 400 instead of being dropped."""

    class Config:
        extra = "forbid"
