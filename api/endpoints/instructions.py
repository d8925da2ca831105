"""
Gloo Instruction Endpoints
Step-by-step preparation instructions; images are referenced by URL
"""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select
import structlog

from core.dependencies import CurrentUserId, DbSession
from core.errors import NotFoundError, ServiceError
from models.recipe_models import Instruction
from schemas.recipe_schemas import InstructionBatch, InstructionUpdate
from services.recipe_service import recipe_service
from utils.responses import success_response

logger = structlog.get_logger()
router = APIRouter()


async def _owned_instruction(db, instruction_id: int, user_id: str) -> Instruction:
    instruction = await db.get(Instruction, instruction_id)
    if instruction is None:
        raise NotFoundError("Instruction not found")
    await recipe_service.get_owned_recipe(db, instruction.recipe_id, user_id)
    return instruction


@router.post("/{recipe_id}", status_code=status.HTTP_201_CREATED)
async def create_instructions(
    recipe_id: int, payload: InstructionBatch, current_user_id: CurrentUserId, db: DbSession
):
    try:
        await recipe_service.get_owned_recipe(db, recipe_id, current_user_id)
        rows = [Instruction(recipe_id=recipe_id, **item.model_dump()) for item in payload.instructions]
        db.add_all(rows)
        await db.flush()
        rows.sort(key=lambda row: (row.step, row.id))
        return success_response(
            data=[row.to_dict() for row in rows],
            message=f"{len(rows)} instructions added"
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to create instructions for recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create instructions")


@router.get("/recipe/{recipe_id}")
async def list_instructions(recipe_id: int, db: DbSession):
    try:
        await recipe_service.get_recipe(db, recipe_id)
        result = await db.execute(
            select(Instruction)
            .where(Instruction.recipe_id == recipe_id)
            .order_by(Instruction.step, Instruction.id)
        )
        return success_response(data=[row.to_dict() for row in result.scalars()])
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to list instructions for recipe {recipe_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to retrieve instructions")


@router.put("/{instruction_id}")
async def update_instruction(
    instruction_id: int, payload: InstructionUpdate, current_user_id: CurrentUserId, db: DbSession
):
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    try:
        instruction = await _owned_instruction(db, instruction_id, current_user_id)
        for key, value in changes.items():
            setattr(instruction, key, value)
        await db.flush()
        return success_response(data=instruction.to_dict(), message="Instruction updated")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to update instruction {instruction_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update instruction")


@router.delete("/{instruction_id}")
async def delete_instruction(instruction_id: int, current_user_id: CurrentUserId, db: DbSession):
    try:
        instruction = await _owned_instruction(db, instruction_id, current_user_id)
        await db.delete(instruction)
        return success_response(message="Instruction deleted")
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete instruction {instruction_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete instruction")
