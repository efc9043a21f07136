# catalog_auth/application/dtos/base_dto.py

"""
Base classes for DTOs.

CustomBaseModel reads attributes straight from domain dataclasses.
CamelModel additionally exposes camelCase field names on the wire while
still accepting snake_case input.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CustomBaseModel(BaseModel):
    """
    Base model for all application DTOs.
    """
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class CamelModel(CustomBaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True, alias_generator=to_camel)
