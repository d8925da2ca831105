"""
Gloo API Endpoints
All API endpoint modules
"""

from . import (
    health, recipes, admin, ingredients, instructions, rates, likes, comments,
    follows, favorites, collections, notifications, search, users,
)

__all__ = [
    "health",
    "recipes",
    "admin",
    "ingredients",
    "instructions",
    "rates",
    "likes",
    "comments",
    "follows",
    "favorites",
    "collections",
    "notifications",
    "search",
    "users",
]
