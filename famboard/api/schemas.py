"""
Shared pieces of the request/response models
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase (wire format) or snake_case keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def provided_fields(model: BaseModel) -> dict:
    """Only the fields the client actually sent, for partial updates"""
    return model.model_dump(exclude_unset=True)
