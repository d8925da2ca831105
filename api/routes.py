"""
Gloo API Routes
Main router configuration for all API endpoints
"""

from fastapi import APIRouter

from api.endpoints import (
    health, recipes, admin, ingredients, instructions, rates, likes, comments,
    follows, favorites, collections, notifications, search, users,
)

# Create main API router
api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(recipes.router, prefix="/recipes", tags=["recipes"])
api_router.include_router(admin.router, prefix="/admin", tags=["moderation"])
api_router.include_router(ingredients.router, prefix="/ingredients", tags=["ingredients"])
api_router.include_router(instructions.router, prefix="/instructions", tags=["instructions"])
api_router.include_router(rates.router, prefix="/rates", tags=["ratings"])
api_router.include_router(likes.router, prefix="/likes", tags=["likes"])
api_router.include_router(comments.router, prefix="/comments", tags=["comments"])
api_router.include_router(follows.router, prefix="/follows", tags=["follows"])
api_router.include_router(favorites.router, prefix="/favorites", tags=["favorites"])
api_router.include_router(collections.router, prefix="/collections", tags=["collections"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(search.router, prefix="/search", tags=["search"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
