"""
Gloo Social Schemas
Pydantic models for ratings, likes, comments, follows, favorites and collections
"""

from typing import List, Optional
from pydantic import Field, field_validator

from schemas.recipe_schemas import CamelModel, reject_null


class RecipeRef(CamelModel):
    recipe_id: int = Field(..., ge=1)


class RateRequest(CamelModel):
    recipe_id: int = Field(..., ge=1)
    rating: int = Field(..., ge=1, le=5)


class CommentCreate(CamelModel):
    recipe_id: int = Field(..., ge=1)
    content: str = Field(..., min_length=1, max_length=1000)


class CommentUpdate(CamelModel):
    content: str = Field(..., min_length=1, max_length=1000)


class FollowRequest(CamelModel):
    following_id: str = Field(..., min_length=1)


class CollectionCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=20)
    is_public: bool = False


class CollectionUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=20)
    is_public: Optional[bool] = None

    @field_validator("name", "is_public", mode="before")
    @classmethod
    def validate_required(cls, v):
        return reject_null(v)


class CollectionFromFavorites(CollectionCreate):
    recipe_ids: List[int] = Field(..., min_length=1)
