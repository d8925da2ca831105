"""
Gloo Database Models
Central import module for all database models
"""

from .users import User
from .recipe_models import (
    Recipe,
    Ingredient,
    Instruction,
    Category,
    RecipeCategory,
    RecipeStatus,
    ModerationEvent,
)
from .social_models import (
    Rate,
    RecipeLike,
    RecipeComment,
    Follow,
    Favorite,
    Collection,
    CollectionRecipe,
)
from .notification_models import Notification, NotificationType
from .search_models import SearchHistory, SearchSuggestion

__all__ = [
    "User",

    # Recipes
    "Recipe",
    "Ingredient",
    "Instruction",
    "Category",
    "RecipeCategory",
    "RecipeStatus",
    "ModerationEvent",

    # Social graph
    "Rate",
    "RecipeLike",
    "RecipeComment",
    "Follow",
    "Favorite",
    "Collection",
    "CollectionRecipe",

    # Notifications
    "Notification",
    "NotificationType",

    # Search
    "SearchHistory",
    "SearchSuggestion",
]
