"""
Gloo Search Service
Recipe and user search, search history and popularity-ranked suggestions
"""

from typing import Any, Dict, List, Optional, Tuple
import structlog
from sqlalchemy import select, func, or_, case, exists, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from models.recipe_models import Recipe, Ingredient, RecipeCategory, RecipeStatus
from models.search_models import SearchHistory, SearchSuggestion
from models.social_models import Rate, RecipeLike
from models.users import User
from utils.date_utils import hours_ago, utcnow

logger = structlog.get_logger()

SORT_OPTIONS = ("relevance", "newest", "rating", "popularity")
SORT_PATTERN = "^(" + "|".join(SORT_OPTIONS) + ")$"
HISTORY_DEDUPE_HOURS = 24
USER_RECIPES_PREVIEW = 10


def _pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _split_terms(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [term.strip().lower() for term in raw.split(",") if term.strip()]


class SearchService:
    def __init__(self):
        self.history_limit = settings.SEARCH_HISTORY_LIMIT
        self.suggestions_limit = settings.SEARCH_SUGGESTIONS_LIMIT

    async def search_recipes(
        self,
        db: AsyncSession,
        offset: int,
        limit: int,
        query: Optional[str] = None,
        category_id: Optional[int] = None,
        max_duration: Optional[int] = None,
        exclude_ingredients: Optional[str] = None,
        sort_by: str = "relevance",
    ) -> Tuple[List[Recipe], int]:
        """
        Approved recipes matching the filters

        ``query`` matches title, description or any ingredient name.
        ``exclude_ingredients`` is a comma separated list; recipes with an
        ingredient whose name contains any of the terms are dropped.
        """
        conditions = [Recipe.status == RecipeStatus.APPROVED.value]
        text = query.strip() if query else ""

        if text:
            pattern = _pattern(text)
            has_ingredient = exists().where(
                Ingredient.recipe_id == Recipe.id,
                Ingredient.name.ilike(pattern, escape="\\"),
            )
            conditions.append(or_(
                Recipe.title.ilike(pattern, escape="\\"),
                Recipe.description.ilike(pattern, escape="\\"),
                has_ingredient,
            ))

        if category_id is not None:
            conditions.append(exists().where(
                RecipeCategory.recipe_id == Recipe.id,
                RecipeCategory.category_id == category_id,
            ))

        if max_duration is not None:
            conditions.append(Recipe.estimated_time <= max_duration)

        excluded = _split_terms(exclude_ingredients)
        if excluded:
            conditions.append(~exists().where(
                Ingredient.recipe_id == Recipe.id,
                or_(*(Ingredient.name.ilike(_pattern(term), escape="\\") for term in excluded)),
            ))

        total = await db.scalar(select(func.count(Recipe.id)).where(*conditions))

        stmt = select(Recipe).where(*conditions)
        newest = (Recipe.created_at.desc(), Recipe.id.desc())
        if sort_by == "rating":
            average = (
                select(func.avg(Rate.rating)).where(Rate.recipe_id == Recipe.id).correlate(Recipe).scalar_subquery()
            )
            stmt = stmt.order_by(func.coalesce(average, 0).desc(), *newest)
        elif sort_by == "popularity":
            likes = (
                select(func.count(RecipeLike.id)).where(RecipeLike.recipe_id == Recipe.id).correlate(Recipe).scalar_subquery()
            )
            stmt = stmt.order_by(likes.desc(), *newest)
        elif sort_by == "relevance" and text:
            title_hit = case((Recipe.title.ilike(_pattern(text), escape="\\"), 0), else_=1)
            stmt = stmt.order_by(title_hit, *newest)
        else:
            stmt = stmt.order_by(*newest)

        result = await db.execute(stmt.offset(offset).limit(limit))
        return list(result.scalars().all()), total or 0

    async def search_users(
        self, db: AsyncSession, query: str, offset: int, limit: int
    ) -> Tuple[List[Tuple[User, List[Recipe]]], int]:
        """Local profiles whose social handle or description contains any query word"""
        terms = [term for term in query.lower().split() if term]
        condition = or_(*(
            or_(
                User.id_social_media.ilike(_pattern(term), escape="\\"),
                User.description.ilike(_pattern(term), escape="\\"),
            )
            for term in terms
        ))

        total = await db.scalar(select(func.count(User.id)).where(condition))
        result = await db.execute(
            select(User).where(condition).order_by(User.created_at.desc(), User.id).offset(offset).limit(limit)
        )
        users = list(result.scalars().all())

        found = []
        for user in users:
            recipes = await db.execute(
                select(Recipe)
                .where(Recipe.user_id == user.id, Recipe.status == RecipeStatus.APPROVED.value)
                .order_by(Recipe.created_at.desc(), Recipe.id.desc())
                .limit(USER_RECIPES_PREVIEW)
            )
            found.append((user, list(recipes.scalars().all())))
        return found, total or 0

    async def suggestions(self, db: AsyncSession, prefix: Optional[str] = None) -> List[SearchSuggestion]:
        stmt = select(SearchSuggestion).where(SearchSuggestion.is_active.is_(True))
        if prefix and prefix.strip():
            escaped = prefix.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            stmt = stmt.where(SearchSuggestion.term.ilike(f"{escaped}%", escape="\\"))
        result = await db.execute(
            stmt.order_by(SearchSuggestion.popularity.desc(), SearchSuggestion.term).limit(self.suggestions_limit)
        )
        return list(result.scalars().all())

    async def history(self, db: AsyncSession, user_id: str) -> List[SearchHistory]:
        result = await db.execute(
            select(SearchHistory)
            .where(SearchHistory.user_id == user_id)
            .order_by(SearchHistory.created_at.desc(), SearchHistory.id.desc())
            .limit(self.history_limit)
        )
        return list(result.scalars().all())

    async def record_search(
        self,
        db: AsyncSession,
        user_id: str,
        query: str,
        filters: Optional[Dict[str, Any]] = None,
        result_count: int = 0,
    ) -> Optional[SearchHistory]:
        """
        Save a query to the user's history and count it towards its suggestion

        A query the user already saved in the last 24 hours is ignored and
        None is returned.
        """
        recent = await db.scalar(
            select(SearchHistory.id).where(
                SearchHistory.user_id == user_id,
                SearchHistory.query == query,
                SearchHistory.created_at >= hours_ago(HISTORY_DEDUPE_HOURS),
            ).limit(1)
        )
        if recent is not None:
            return None

        now = utcnow()
        entry = SearchHistory(
            user_id=user_id,
            query=query,
            filters=filters,
            result_count=result_count,
            created_at=now,
        )
        db.add(entry)

        term = query.lower()
        bumped = await db.execute(
            update(SearchSuggestion)
            .where(SearchSuggestion.term == term)
            .values(popularity=SearchSuggestion.popularity + 1, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if bumped.rowcount == 0:
            db.add(SearchSuggestion(term=term, popularity=1, is_active=True, created_at=now, updated_at=now))

        await db.flush()
        logger.info("Search recorded", user_id=user_id, query=query, results=result_count)
        return entry


# Global search service instance
search_service = SearchService()
