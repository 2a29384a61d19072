"""
Base schemas with common functionality.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Type, TypeVar, Any

T = TypeVar('T', bound='BaseSchema')

class BaseSchema(BaseModel):
    """Base schema for all API payloads: snake_case in Python, camelCase on the wire"""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @classmethod
    def from_orm_model(cls: Type[T], orm_model: Any) -> T:
        """Create a schema instance from an ORM model"""
        return cls.model_validate(orm_model)
