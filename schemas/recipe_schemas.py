"""
Gloo Recipe Schemas
Pydantic models for recipe, ingredient, instruction and moderation requests
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Request bodies use camelCase keys on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


def _check_media_url(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    if value.startswith("data:"):
        raise ValueError("Inline uploads are not supported; provide a media URL")
    if not value.startswith(("http://", "https://")):
        raise ValueError("Media must be an http(s) URL")
    return value


def reject_null(value):
    """Optional in an update means omitted; explicit null would clear a required column"""
    if value is None:
        raise ValueError("Field cannot be null")
    return value


class RecipeCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    estimated_time: int = Field(..., ge=1)
    servings: Optional[int] = Field(None, ge=1)
    media: Optional[str] = None
    media_type: Optional[str] = Field(None, pattern="^(image|video)$")

    @field_validator("media")
    @classmethod
    def validate_media(cls, v):
        return _check_media_url(v)


class RecipeUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    estimated_time: Optional[int] = Field(None, ge=1)
    servings: Optional[int] = Field(None, ge=1)
    media: Optional[str] = None
    media_type: Optional[str] = Field(None, pattern="^(image|video)$")

    @field_validator("title", "description", "estimated_time", mode="before")
    @classmethod
    def validate_required(cls, v):
        return reject_null(v)

    @field_validator("media")
    @classmethod
    def validate_media(cls, v):
        return _check_media_url(v)


class ApproveRecipeRequest(CamelModel):
    comment: Optional[str] = Field(None, max_length=1000)


class RejectRecipeRequest(CamelModel):
    comment: str = Field(..., min_length=1, max_length=1000)


class IngredientInput(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None


class IngredientBatch(CamelModel):
    ingredients: List[IngredientInput] = Field(..., min_length=1)


class IngredientUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    quantity: Optional[float] = Field(None, gt=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None

    @field_validator("name", "quantity", "unit", mode="before")
    @classmethod
    def validate_required(cls, v):
        return reject_null(v)


class InstructionInput(CamelModel):
    step: int = Field(..., ge=1)
    description: str = Field(..., min_length=1)
    image_url: Optional[str] = None

    @field_validator("image_url")
    @classmethod
    def validate_image(cls, v):
        return _check_media_url(v)


class InstructionBatch(CamelModel):
    instructions: List[InstructionInput] = Field(..., min_length=1)


class InstructionUpdate(CamelModel):
    step: Optional[int] = Field(None, ge=1)
    description: Optional[str] = Field(None, min_length=1)
    image_url: Optional[str] = None

    @field_validator("step", "description", mode="before")
    @classmethod
    def validate_required(cls, v):
        return reject_null(v)

    @field_validator("image_url")
    @classmethod
    def validate_image(cls, v):
        return _check_media_url(v)
