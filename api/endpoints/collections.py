"""
Gloo Collection Endpoints
Named recipe collections; private collections are visible to their owner only
"""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select, func, delete
import structlog

from core.dependencies import DbSession, Identity, OptionalUserId, OwnerId
from core.errors import ServiceError
from models.recipe_models import Recipe
from models.social_models import Collection, CollectionRecipe
from schemas.social_schemas import CollectionCreate, CollectionUpdate, RecipeRef
from services.recipe_service import recipe_service
from services.user_service import user_service
from utils.date_utils import utcnow
from utils.responses import success_response

logger = structlog.get_logger()
router = APIRouter()


async def _get_collection(db, user_id: str, collection_id: int) -> Collection:
    collection = await db.get(Collection, collection_id)
    if collection is None or collection.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Collection not found")
    return collection


@router.post("/{user_id}", status_code=status.HTTP_201_CREATED)
async def create_collection(user_id: str, payload: CollectionCreate, owner_id: OwnerId, db: DbSession):
    try:
        await user_service.ensure_user(db, owner_id)
        now = utcnow()
        collection = Collection(user_id=owner_id, created_at=now, updated_at=now, **payload.model_dump())
        db.add(collection)
        await db.flush()
        return success_response(data=collection.to_dict(), message="Collection created")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to create collection for {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create collection")


@router.get("/{user_id}")
async def list_collections(user_id: str, viewer_id: OptionalUserId, db: DbSession):
    """A user's collections with recipe counts; others only see the public ones"""
    try:
        recipe_count = (
            select(func.count(CollectionRecipe.id))
            .where(CollectionRecipe.collection_id == Collection.id)
            .correlate(Collection)
            .scalar_subquery()
        )
        query = select(Collection, recipe_count).where(Collection.user_id == user_id)
        if viewer_id != user_id:
            query = query.where(Collection.is_public.is_(True))
        result = await db.execute(query.order_by(Collection.created_at.desc(), Collection.id.desc()))

        data = []
        for collection, count in result.all():
            item = collection.to_dict()
            item["recipeCount"] = count or 0
            data.append(item)
        return success_response(data=data)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to list collections of {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve collections")


@router.get("/{user_id}/{collection_id}")
async def get_collection(
    user_id: str, collection_id: int, viewer_id: OptionalUserId, identity: Identity, db: DbSession
):
    try:
        collection = await _get_collection(db, user_id, collection_id)
        if not collection.is_public and viewer_id != user_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Collection not found")

        result = await db.execute(
            select(Recipe)
            .join(CollectionRecipe, CollectionRecipe.recipe_id == Recipe.id)
            .where(CollectionRecipe.collection_id == collection_id)
            .order_by(CollectionRecipe.added_at.desc(), CollectionRecipe.id.desc())
        )
        data = collection.to_dict()
        data["recipes"] = await recipe_service.enrich(
            db, identity, result.scalars().all(), include_details=False
        )
        return success_response(data=data)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to get collection {collection_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve collection")


@router.put("/{user_id}/{collection_id}")
async def update_collection(
    user_id: str, collection_id: int, payload: CollectionUpdate, owner_id: OwnerId, db: DbSession
):
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    try:
        collection = await _get_collection(db, owner_id, collection_id)
        for key, value in changes.items():
            setattr(collection, key, value)
        collection.updated_at = utcnow()
        await db.flush()
        return success_response(data=collection.to_dict(), message="Collection updated")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to update collection {collection_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update collection")


@router.delete("/{user_id}/{collection_id}")
async def delete_collection(user_id: str, collection_id: int, owner_id: OwnerId, db: DbSession):
    try:
        collection = await _get_collection(db, owner_id, collection_id)
        await db.execute(
            delete(CollectionRecipe)
            .where(CollectionRecipe.collection_id == collection_id)
            .execution_options(synchronize_session=False)
        )
        await db.delete(collection)
        return success_response(message="Collection deleted")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete collection {collection_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete collection")


@router.post("/{user_id}/{collection_id}/recipes", status_code=status.HTTP_201_CREATED)
async def add_recipe_to_collection(
    user_id: str, collection_id: int, payload: RecipeRef, owner_id: OwnerId, db: DbSession
):
    try:
        collection = await _get_collection(db, owner_id, collection_id)
        recipe = await recipe_service.get_recipe(db, payload.recipe_id)

        existing = await db.scalar(
            select(CollectionRecipe.id).where(
                CollectionRecipe.collection_id == collection.id,
                CollectionRecipe.recipe_id == recipe.id,
            )
        )
        if existing is not None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Recipe already in collection")

        now = utcnow()
        db.add(CollectionRecipe(collection_id=collection.id, recipe_id=recipe.id, added_at=now))
        collection.updated_at = now
        await db.flush()
        return success_response(
            data={"collectionId": collection.id, "recipeId": recipe.id},
            message="Recipe added to collection"
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to add recipe {payload.recipe_id} to collection {collection_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add recipe to collection")


@router.delete("/{user_id}/{collection_id}/recipes/{recipe_id}")
async def remove_recipe_from_collection(
    user_id: str, collection_id: int, recipe_id: int, owner_id: OwnerId, db: DbSession
):
    try:
        collection = await _get_collection(db, owner_id, collection_id)
        result = await db.execute(
            select(CollectionRecipe).where(
                CollectionRecipe.collection_id == collection.id,
                CollectionRecipe.recipe_id == recipe_id,
            )
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not in collection")
        await db.delete(entry)
        collection.updated_at = utcnow()
        return success_response(message="Recipe removed from collection")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to remove recipe {recipe_id} from collection {collection_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to remove recipe from collection")
