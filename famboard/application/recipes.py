"""Recipes and per-member ratings"""
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from famboard.application.errors import NotFound, ValidationFailed
from famboard.application.points import get_member_or_404
from famboard.infrastructure.db.models import FamilyMember, MealPlanItem, Recipe, RecipeRating
from famboard.utils.clock import utc_now

DIFFICULTIES = ["EASY", "MEDIUM", "HARD"]
RECIPE_FIELDS = [
    "name", "description", "cuisine", "icon", "prep_time", "cook_time",
    "servings", "difficulty", "ingredients", "instructions", "tips", "tags",
    "meal_types", "is_active",
]
RATING_MIN = 1
RATING_MAX = 5


class RecipeValidationError(ValidationFailed):
    pass


def get_recipe_or_404(db: Session, recipe_id: int) -> Recipe:
    recipe = db.query(Recipe).filter(Recipe.id == recipe_id).first()
    if recipe is None:
        raise NotFound("Recipe not found")
    return recipe


def rating_stats(ratings: list[RecipeRating]) -> dict:
    """avgRating rounded to 0.1, wouldMakeAgainPercent to a whole number; None without ratings"""
    if not ratings:
        return {"avgRating": None, "wouldMakeAgainPercent": None, "ratingCount": 0}
    avg = sum(r.rating for r in ratings) / len(ratings)
    again = sum(1 for r in ratings if r.would_make_again) / len(ratings) * 100
    return {
        "avgRating": round(avg, 1),
        "wouldMakeAgainPercent": round(again),
        "ratingCount": len(ratings),
    }


def serialize_recipe(recipe: Recipe, ratings: list[RecipeRating] | None = None, used_in: int = 0) -> dict:
    data = {
        "id": recipe.id,
        "name": recipe.name,
        "description": recipe.description,
        "cuisine": recipe.cuisine,
        "icon": recipe.icon,
        "prepTime": recipe.prep_time,
        "cookTime": recipe.cook_time,
        "servings": recipe.servings,
        "difficulty": recipe.difficulty,
        "ingredients": recipe.ingredients,
        "instructions": recipe.instructions,
        "tips": recipe.tips,
        "tags": recipe.tags,
        "mealTypes": recipe.meal_types,
        "isActive": recipe.is_active,
    }
    data.update(rating_stats(ratings or []))
    data["usedInMealPlans"] = used_in
    return data


def serialize_rating(rating: RecipeRating, member: FamilyMember | None = None) -> dict:
    data = {
        "id": rating.id,
        "recipeId": rating.recipe_id,
        "memberId": rating.member_id,
        "rating": rating.rating,
        "notes": rating.notes,
        "wouldMakeAgain": rating.would_make_again,
        "updatedAt": rating.updated_at.isoformat() if rating.updated_at else None,
    }
    if member is not None:
        data["member"] = {"id": member.id, "name": member.name, "avatar": member.avatar, "color": member.color}
    return data


def ratings_by_recipe(db: Session, recipe_ids: list[int]) -> dict[int, list[RecipeRating]]:
    result: dict[int, list[RecipeRating]] = {}
    if not recipe_ids:
        return result
    for rating in db.query(RecipeRating).filter(RecipeRating.recipe_id.in_(recipe_ids)).all():
        result.setdefault(rating.recipe_id, []).append(rating)
    return result


def _meal_plan_usage(db: Session, recipe_ids: list[int]) -> dict[int, int]:
    if not recipe_ids:
        return {}
    rows = (
        db.query(MealPlanItem.recipe_id, func.count(MealPlanItem.id))
        .filter(MealPlanItem.recipe_id.in_(recipe_ids))
        .group_by(MealPlanItem.recipe_id)
        .all()
    )
    return {recipe_id: count for recipe_id, count in rows}


def list_recipes(
    db: Session,
    cuisine: str | None = None,
    tag: str | None = None,
    search: str | None = None,
    active_only: bool = True,
    min_rating: float | None = None,
) -> list[dict]:
    query = db.query(Recipe)
    if active_only:
        query = query.filter(Recipe.is_active == True)  # noqa: E712
    if cuisine:
        query = query.filter(Recipe.cuisine == cuisine)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Recipe.name.ilike(pattern), Recipe.description.ilike(pattern)))
    recipes = query.order_by(Recipe.name.asc()).all()

    # tags is a JSON list; filter in Python so SQLite and Postgres agree
    if tag:
        needle = tag.lower()
        recipes = [r for r in recipes if any(needle == str(t).lower() for t in (r.tags or []))]

    ids = [r.id for r in recipes]
    ratings = ratings_by_recipe(db, ids)
    usage = _meal_plan_usage(db, ids)
    items = [serialize_recipe(r, ratings.get(r.id, []), usage.get(r.id, 0)) for r in recipes]

    if min_rating is not None:
        items = [i for i in items if i["avgRating"] is not None and i["avgRating"] >= min_rating]
    return items


def get_recipe_detail(db: Session, recipe_id: int) -> dict:
    recipe = get_recipe_or_404(db, recipe_id)
    ratings = ratings_by_recipe(db, [recipe.id]).get(recipe.id, [])
    usage = _meal_plan_usage(db, [recipe.id]).get(recipe.id, 0)
    data = serialize_recipe(recipe, ratings, usage)
    data["ratings"] = list_ratings(db, recipe.id)
    return data


def list_ratings(db: Session, recipe_id: int) -> list[dict]:
    rows = (
        db.query(RecipeRating, FamilyMember)
        .outerjoin(FamilyMember, FamilyMember.id == RecipeRating.member_id)
        .filter(RecipeRating.recipe_id == recipe_id)
        .order_by(RecipeRating.updated_at.desc())
        .all()
    )
    return [serialize_rating(rating, member) for rating, member in rows]


def _validate(fields: dict[str, Any], creating: bool = False) -> None:
    if "name" in fields or creating:
        fields["name"] = (fields.get("name") or "").strip()
        if not fields["name"]:
            raise RecipeValidationError("Recipe name is required")
    if creating and (not fields.get("ingredients") or not fields.get("instructions")):
        raise RecipeValidationError("Ingredients and instructions are required")
    if fields.get("difficulty") is not None and fields["difficulty"] not in DIFFICULTIES:
        raise RecipeValidationError(f"difficulty must be one of: {', '.join(DIFFICULTIES)}")
    if fields.get("servings") is not None and fields["servings"] < 1:
        raise RecipeValidationError("servings must be at least 1")


class CreateRecipeUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, **fields: Any) -> Recipe:
        unknown = set(fields) - set(RECIPE_FIELDS)
        if unknown:
            raise RecipeValidationError(f"Unknown recipe fields: {', '.join(sorted(unknown))}")
        _validate(fields, creating=True)
        fields["servings"] = fields.get("servings") or 4
        fields["difficulty"] = fields.get("difficulty") or "EASY"
        fields.setdefault("is_active", True)
        recipe = Recipe(**fields)
        self.db.add(recipe)
        self.db.commit()
        return recipe


class UpdateRecipeUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, recipe_id: int, changes: dict[str, Any]) -> Recipe:
        recipe = get_recipe_or_404(self.db, recipe_id)
        unknown = set(changes) - set(RECIPE_FIELDS)
        if unknown:
            raise RecipeValidationError(f"Unknown recipe fields: {', '.join(sorted(unknown))}")
        _validate(changes)
        for key in ("ingredients", "instructions"):
            if key in changes and not changes[key]:
                raise RecipeValidationError("Ingredients and instructions are required")
        for key, value in changes.items():
            setattr(recipe, key, value)
        self.db.commit()
        return recipe


class DeleteRecipeUseCase:
    """Ratings go with the recipe; meal plan slots that used it keep their row without a recipe"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, recipe_id: int) -> None:
        recipe = get_recipe_or_404(self.db, recipe_id)
        self.db.query(RecipeRating).filter(RecipeRating.recipe_id == recipe_id).delete(synchronize_session=False)
        self.db.query(MealPlanItem).filter(MealPlanItem.recipe_id == recipe_id).update(
            {MealPlanItem.recipe_id: None, MealPlanItem.custom_meal: recipe.name},
            synchronize_session=False,
        )
        self.db.delete(recipe)
        self.db.commit()


class RateRecipeUseCase:
    """Upsert one rating per (recipe, member); returns (rating, recipe stats)"""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        recipe_id: int,
        member_id: int,
        rating: int,
        notes: str | None = None,
        would_make_again: bool | None = None,
    ) -> tuple[RecipeRating, dict]:
        if isinstance(rating, bool) or not isinstance(rating, int) or not RATING_MIN <= rating <= RATING_MAX:
            raise RecipeValidationError("Rating must be a number between 1 and 5")
        recipe = get_recipe_or_404(self.db, recipe_id)
        get_member_or_404(self.db, member_id)

        row = self.db.query(RecipeRating).filter(
            RecipeRating.recipe_id == recipe.id,
            RecipeRating.member_id == member_id,
        ).first()
        if row is None:
            row = RecipeRating(
                recipe_id=recipe.id,
                member_id=member_id,
                rating=rating,
                notes=notes,
                would_make_again=True if would_make_again is None else would_make_again,
                updated_at=utc_now(),
            )
            self.db.add(row)
        else:
            row.rating = rating
            if notes is not None:
                row.notes = notes
            if would_make_again is not None:
                row.would_make_again = would_make_again
            row.updated_at = utc_now()
        self.db.commit()

        ratings = ratings_by_recipe(self.db, [recipe.id]).get(recipe.id, [])
        return row, rating_stats(ratings)


class DeleteRatingUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, recipe_id: int, member_id: int) -> None:
        row = self.db.query(RecipeRating).filter(
            RecipeRating.recipe_id == recipe_id,
            RecipeRating.member_id == member_id,
        ).first()
        if row is None:
            raise NotFound("Rating not found")
        self.db.delete(row)
        self.db.commit()
