"""
Gloo Ingredient Endpoints
"""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select
import structlog

from core.dependencies import CurrentUserId, DbSession
from core.errors import NotFoundError, ServiceError
from models.recipe_models import Ingredient
from schemas.recipe_schemas import IngredientBatch, IngredientUpdate
from services.recipe_service import recipe_service
from utils.responses import success_response

logger = structlog.get_logger()
router = APIRouter()


async def _owned_ingredient(db, ingredient_id: int, user_id: str) -> Ingredient:
    ingredient = await db.get(Ingredient, ingredient_id)
    if ingredient is None:
        raise NotFoundError("Ingredient not found")
    await recipe_service.get_owned_recipe(db, ingredient.recipe_id, user_id)
    return ingredient


@router.post("/{recipe_id}", status_code=status.HTTP_201_CREATED)
async def create_ingredients(
    recipe_id: int, payload: IngredientBatch, current_user_id: CurrentUserId, db: DbSession
):
    """Add a batch of ingredients to one of the caller's recipes"""
    try:
        await recipe_service.get_owned_recipe(db, recipe_id, current_user_id)
        rows = [Ingredient(recipe_id=recipe_id, **item.model_dump()) for item in payload.ingredients]
        db.add_all(rows)
        await db.flush()
        return success_response(
            data=[row.to_dict() for row in rows],
            message=f"{len(rows)} ingredients added"
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to create ingredients for recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create ingredients")


@router.get("/recipe/{recipe_id}")
async def list_ingredients(recipe_id: int, db: DbSession):
    try:
        await recipe_service.get_recipe(db, recipe_id)
        result = await db.execute(
            select(Ingredient).where(Ingredient.recipe_id == recipe_id).order_by(Ingredient.id)
        )
        return success_response(data=[row.to_dict() for row in result.scalars()])
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to list ingredients for recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve ingredients")


@router.put("/{ingredient_id}")
async def update_ingredient(
    ingredient_id: int, payload: IngredientUpdate, current_user_id: CurrentUserId, db: DbSession
):
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    try:
        ingredient = await _owned_ingredient(db, ingredient_id, current_user_id)
        for key, value in changes.items():
            setattr(ingredient, key, value)
        await db.flush()
        return success_response(data=ingredient.to_dict(), message="Ingredient updated")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to update ingredient {ingredient_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update ingredient")


@router.delete("/{ingredient_id}")
async def delete_ingredient(ingredient_id: int, current_user_id: CurrentUserId, db: DbSession):
    try:
        ingredient = await _owned_ingredient(db, ingredient_id, current_user_id)
        await db.delete(ingredient)
        return success_response(message="Ingredient deleted")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete ingredient {ingredient_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete ingredient")
