"""
Gloo User Schemas
"""

from typing import Optional
from pydantic import Field

from schemas.recipe_schemas import CamelModel

# Fields stored by the identity provider rather than locally
IDENTITY_FIELDS = {"first_name", "last_name", "username"}


class UserUpdate(CamelModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    username: Optional[str] = Field(None, min_length=1, max_length=64)
    description: Optional[str] = Field(None, max_length=1000)
    id_social_media: Optional[str] = Field(None, max_length=255)
