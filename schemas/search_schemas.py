"""
Gloo Search Schemas
"""

from typing import Any, Dict, Optional
from pydantic import Field

from schemas.recipe_schemas import CamelModel


class SearchHistoryCreate(CamelModel):
    query: str = Field(..., min_length=1, max_length=255)
    filters: Optional[Dict[str, Any]] = None
    result_count: int = Field(0, ge=0)


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=20)
