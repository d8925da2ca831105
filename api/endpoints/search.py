"""
Gloo Search Endpoints
Recipe and user search, suggestions, categories and per-user search history
"""

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select, func, delete
from typing import Optional
import structlog

from core.dependencies import AdminUser, CurrentUserId, DbSession, Identity, OwnerId, PaginationParams
from core.errors import ServiceError
from models.recipe_models import Category, RecipeCategory
from models.search_models import SearchHistory
from schemas.search_schemas import CategoryCreate, SearchHistoryCreate
from services.identity_service import fetch_profiles
from services.recipe_service import recipe_service
from services.search_service import search_service, SORT_PATTERN
from utils.responses import success_response, pagination_meta

logger = structlog.get_logger()
router = APIRouter()


@router.get("/")
async def search_recipes(
    pagination: PaginationParams,
    identity: Identity,
    db: DbSession,
    query: Optional[str] = Query(None, max_length=255),
    category_id: Optional[int] = Query(None, alias="categoryId", ge=1),
    max_duration: Optional[int] = Query(None, alias="maxDuration", ge=1),
    exclude_ingredients: Optional[str] = Query(None, alias="excludeIngredients"),
    sort_by: str = Query("relevance", alias="sortBy", pattern=SORT_PATTERN),
):
    """Search approved recipes by text, category, duration and excluded ingredients"""
    try:
        recipes, total = await search_service.search_recipes(
            db,
            pagination["offset"],
            pagination["limit"],
            query=query,
            category_id=category_id,
            max_duration=max_duration,
            exclude_ingredients=exclude_ingredients,
            sort_by=sort_by,
        )
        data = await recipe_service.enrich(db, identity, recipes)
        return success_response(
            data=data,
            pagination=pagination_meta(pagination["page"], pagination["limit"], total)
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Recipe search failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to search recipes")


@router.get("/users")
async def search_users(
    pagination: PaginationParams,
    identity: Identity,
    db: DbSession,
    query: Optional[str] = Query(None, max_length=255),
):
    if not query or not query.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Query parameter is required")

    try:
        found, total = await search_service.search_users(db, query, pagination["offset"], pagination["limit"])
        profiles = await fetch_profiles(identity, (user.id for user, _ in found))

        data = []
        for user, recipes in found:
            item = user.to_dict()
            item["profile"] = profiles.get(user.id)
            item["recipes"] = [recipe.to_dict() for recipe in recipes]
            data.append(item)
        return success_response(
            data=data,
            pagination=pagination_meta(pagination["page"], pagination["limit"], total)
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"User search failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to search users")


@router.get("/suggestions")
async def search_suggestions(db: DbSession, prefix: Optional[str] = Query(None, max_length=255)):
    try:
        suggestions = await search_service.suggestions(db, prefix)
        return success_response(data=[suggestion.to_dict() for suggestion in suggestions])
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get search suggestions: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve suggestions")


@router.get("/categories")
async def list_categories(db: DbSession):
    """Active categories with the number of recipes in each"""
    try:
        result = await db.execute(
            select(Category, func.count(RecipeCategory.id))
            .outerjoin(RecipeCategory, RecipeCategory.category_id == Category.id)
            .where(Category.is_active.is_(True))
            .group_by(Category.id)
            .order_by(Category.name)
        )
        data = []
        for category, recipe_count in result.all():
            item = category.to_dict()
            item["recipeCount"] = recipe_count
            data.append(item)
        return success_response(data=data)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to list categories: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve categories")


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(payload: CategoryCreate, admin: AdminUser, db: DbSession):
    try:
        existing = await db.scalar(select(Category.id).where(func.lower(Category.name) == payload.name.lower()))
        if existing is not None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category already exists")

        category = Category(**payload.model_dump())
        db.add(category)
        await db.flush()
        logger.info("Category created", category_id=category.id, admin_id=admin.id)
        return success_response(data=category.to_dict(), message="Category created")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to create category: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create category")


@router.post("/recipes/{recipe_id}/categories/{category_id}", status_code=status.HTTP_201_CREATED)
async def assign_category(recipe_id: int, category_id: int, current_user_id: CurrentUserId, db: DbSession):
    try:
        await recipe_service.get_owned_recipe(db, recipe_id, current_user_id)
        category = await db.get(Category, category_id)
        if category is None or not category.is_active:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

        existing = await db.scalar(
            select(RecipeCategory.id).where(
                RecipeCategory.recipe_id == recipe_id, RecipeCategory.category_id == category_id
            )
        )
        if existing is not None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Recipe already in category")

        db.add(RecipeCategory(recipe_id=recipe_id, category_id=category_id))
        await db.flush()
        return success_response(
            data={"recipeId": recipe_id, "categoryId": category_id},
            message="Category assigned"
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to assign category {category_id} to recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to assign category")


@router.delete("/recipes/{recipe_id}/categories/{category_id}")
async def unassign_category(recipe_id: int, category_id: int, current_user_id: CurrentUserId, db: DbSession):
    try:
        await recipe_service.get_owned_recipe(db, recipe_id, current_user_id)
        result = await db.execute(
            delete(RecipeCategory)
            .where(RecipeCategory.recipe_id == recipe_id, RecipeCategory.category_id == category_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not in category")
        return success_response(message="Category removed")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to remove category {category_id} from recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to remove category")


@router.get("/history/{user_id}")
async def search_history(user_id: str, owner_id: OwnerId, db: DbSession):
    try:
        entries = await search_service.history(db, owner_id)
        return success_response(data=[entry.to_dict() for entry in entries])
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get search history for {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve search history")


@router.post("/history/{user_id}")
async def add_search_history(user_id: str, payload: SearchHistoryCreate, owner_id: OwnerId, db: DbSession):
    """Record a search; repeating a query within 24 hours is a no-op"""
    try:
        entry = await search_service.record_search(
            db, owner_id, payload.query, payload.filters, payload.result_count
        )
        if entry is None:
            return success_response(message="Search already in recent history")
        return success_response(data=entry.to_dict(), message="Search added to history")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to add search history for {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save search")


@router.delete("/history/{user_id}")
async def clear_search_history(user_id: str, owner_id: OwnerId, db: DbSession):
    try:
        result = await db.execute(
            delete(SearchHistory)
            .where(SearchHistory.user_id == owner_id)
            .execution_options(synchronize_session=False)
        )
        return success_response(data={"deletedCount": result.rowcount}, message="Search history cleared")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to clear search history for {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to clear search history")


@router.delete("/history/{user_id}/{history_id}")
async def remove_search_history(user_id: str, history_id: int, owner_id: OwnerId, db: DbSession):
    try:
        entry = await db.get(SearchHistory, history_id)
        if entry is None or entry.user_id != owner_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Search history entry not found")
        await db.delete(entry)
        return success_response(message="Search removed from history")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to remove search history entry {history_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to remove search")
