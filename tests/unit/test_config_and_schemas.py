from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings
from schemas.recipe_schemas import (
    IngredientUpdate,
    InstructionInput,
    InstructionUpdate,
    RecipeCreate,
    RecipeUpdate,
    RejectRecipeRequest,
)
from schemas.social_schemas import CollectionUpdate
from utils.responses import error_response, pagination_meta, success_response


class TestSettings:
    def test_postgres_url_uses_asyncpg(self) -> None:
        settings = Settings(DATABASE_URL="postgresql://gloo:secret@db:5432/gloo")
        assert settings.database_url_async == "postgresql+asyncpg://gloo:secret@db:5432/gloo"

    def test_sqlite_url_is_left_alone(self) -> None:
        settings = Settings(DATABASE_URL="sqlite+aiosqlite:///./gloo.db")
        assert settings.database_url_async == "sqlite+aiosqlite:///./gloo.db"

    def test_admin_roles_are_configurable(self) -> None:
        settings = Settings(ADMIN_ROLES="org:owner, org:admin")
        assert settings.admin_roles == ["org:owner", "org:admin"]
        assert settings.is_admin_role("org:owner")
        assert not settings.is_admin_role("admin")
        assert not settings.is_admin_role(None)

    def test_comma_separated_origins(self) -> None:
        settings = Settings(CORS_ORIGINS="http://localhost:3000,https://gloo.app")
        assert settings.cors_origins == ["http://localhost:3000", "https://gloo.app"]


class TestResponses:
    def test_success_envelope_omits_empty_fields(self) -> None:
        assert success_response() == {"success": True}
        assert success_response(data=[], message="ok") == {"success": True, "data": [], "message": "ok"}

    def test_error_envelope(self) -> None:
        assert error_response("Recipe not found") == {"success": False, "error": "Recipe not found"}

    def test_pagination_rounds_pages_up(self) -> None:
        assert pagination_meta(2, 20, 41) == {"page": 2, "limit": 20, "total": 41, "totalPages": 3}
        assert pagination_meta(1, 20, 0)["totalPages"] == 0


class TestRecipeSchemas:
    def test_camel_case_keys(self) -> None:
        recipe = RecipeCreate.model_validate(
            {"title": " Soup ", "description": "Hot", "estimatedTime": 15, "mediaType": "video"}
        )
        assert recipe.title == "Soup"
        assert recipe.estimated_time == 15
        assert recipe.media_type == "video"

    def test_inline_media_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RecipeCreate.model_validate(
                {"title": "Soup", "description": "Hot", "estimatedTime": 15, "media": "data:image/png;base64,AAAA"}
            )

    def test_instruction_image_must_be_http(self) -> None:
        with pytest.raises(ValidationError):
            InstructionInput.model_validate({"step": 1, "description": "Boil", "imageUrl": "ftp://host/a.png"})
        step = InstructionInput.model_validate(
            {"step": 1, "description": "Boil", "imageUrl": "https://cdn.gloo.app/a.png"}
        )
        assert step.image_url == "https://cdn.gloo.app/a.png"

    def test_updates_refuse_null_for_required_fields(self) -> None:
        for model, body in (
            (RecipeUpdate, {"estimatedTime": None}),
            (IngredientUpdate, {"unit": None}),
            (InstructionUpdate, {"step": None}),
            (CollectionUpdate, {"isPublic": None}),
        ):
            with pytest.raises(ValidationError):
                model.model_validate(body)

    def test_updates_allow_null_for_optional_fields(self) -> None:
        update = RecipeUpdate.model_validate({"servings": None, "media": None})
        assert update.model_dump(exclude_unset=True) == {"servings": None, "media": None}
        assert IngredientUpdate.model_validate({"description": None}).description is None

    def test_reject_requires_a_comment(self) -> None:
        with pytest.raises(ValidationError):
            RejectRecipeRequest.model_validate({"comment": "   "})
