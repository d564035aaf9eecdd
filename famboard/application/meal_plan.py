"""
Four-week meal plan and the shopping list generated from it
"""
import logging
from datetime import date
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from famboard.application.errors import NotFound, ValidationFailed
from famboard.application.recipes import get_recipe_or_404, rating_stats, ratings_by_recipe
from famboard.domain.meal_plan import (
    DAYS_OF_WEEK, MEAL_TYPES, WEEK_NUMBERS, current_week_number, day_of_week, parse_weeks,
)
from famboard.domain.shopping_routing import STORES, aggregate_ingredients, group_by
from famboard.infrastructure.db.models import MealPlanItem, Recipe
from famboard.utils.clock import local_today

logger = logging.getLogger(__name__)


class MealPlanValidationError(ValidationFailed):
    pass


def _recipe_summary(recipe: Recipe | None, stats: dict | None) -> dict | None:
    if recipe is None:
        return None
    data = {
        "id": recipe.id,
        "name": recipe.name,
        "icon": recipe.icon,
        "cuisine": recipe.cuisine,
        "prepTime": recipe.prep_time,
        "cookTime": recipe.cook_time,
        "difficulty": recipe.difficulty,
    }
    stats = stats or rating_stats([])
    data["avgRating"] = stats["avgRating"]
    data["ratingCount"] = stats["ratingCount"]
    return data


def _serialize_items(db: Session, items: list[MealPlanItem]) -> list[dict]:
    recipe_ids = sorted({i.recipe_id for i in items if i.recipe_id is not None})
    recipes = {r.id: r for r in db.query(Recipe).filter(Recipe.id.in_(recipe_ids)).all()} if recipe_ids else {}
    ratings = ratings_by_recipe(db, recipe_ids)

    result = []
    for item in items:
        recipe = recipes.get(item.recipe_id) if item.recipe_id is not None else None
        result.append({
            "id": item.id,
            "weekNumber": item.week_number,
            "dayOfWeek": item.day_of_week,
            "mealType": item.meal_type,
            "recipeId": item.recipe_id,
            "customMeal": item.custom_meal,
            "notes": item.notes,
            "isActive": item.is_active,
            "recipe": _recipe_summary(recipe, rating_stats(ratings.get(item.recipe_id, [])) if recipe else None),
        })
    return result


def _slot_order(item: MealPlanItem) -> tuple:
    return (item.week_number, DAYS_OF_WEEK.index(item.day_of_week), MEAL_TYPES.index(item.meal_type))


def get_meal_plan(db: Session, week: int | None = None) -> dict:
    """Active items, flat and grouped week -> day -> meal type"""
    query = db.query(MealPlanItem).filter(MealPlanItem.is_active == True)  # noqa: E712
    if week is not None:
        query = query.filter(MealPlanItem.week_number == week)
    items = sorted(query.all(), key=_slot_order)
    serialized = _serialize_items(db, items)

    grouped: dict[int, dict[str, dict[str, dict]]] = {}
    for entry in serialized:
        grouped.setdefault(entry["weekNumber"], {}).setdefault(entry["dayOfWeek"], {})[entry["mealType"]] = entry

    return {
        "items": serialized,
        "grouped": grouped,
        "daysOfWeek": DAYS_OF_WEEK,
        "mealTypes": MEAL_TYPES,
    }


def get_todays_meals(db: Session, today: date | None = None) -> dict:
    today = today or local_today()
    week = current_week_number(today)
    day = day_of_week(today)
    items = (
        db.query(MealPlanItem)
        .filter(
            MealPlanItem.is_active == True,  # noqa: E712
            MealPlanItem.week_number == week,
            MealPlanItem.day_of_week == day,
        )
        .all()
    )
    items.sort(key=_slot_order)
    return {"weekNumber": week, "dayOfWeek": day, "meals": _serialize_items(db, items)}


class UpsertMealPlanItemUseCase:
    """One item per (week, day, meal type); posting to a taken slot replaces it"""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        week_number: int,
        day_of_week: str,
        meal_type: str,
        recipe_id: int | None = None,
        custom_meal: str | None = None,
        notes: str | None = None,
    ) -> MealPlanItem:
        if week_number not in WEEK_NUMBERS:
            raise MealPlanValidationError("weekNumber must be between 1 and 4")
        if day_of_week not in DAYS_OF_WEEK:
            raise MealPlanValidationError(f"dayOfWeek must be one of: {', '.join(DAYS_OF_WEEK)}")
        if meal_type not in MEAL_TYPES:
            raise MealPlanValidationError(f"mealType must be one of: {', '.join(MEAL_TYPES)}")
        custom_meal = (custom_meal or "").strip() or None
        if not recipe_id and not custom_meal:
            raise MealPlanValidationError("Either recipeId or customMeal is required")
        if recipe_id:
            get_recipe_or_404(self.db, recipe_id)

        item = self._find_slot(week_number, day_of_week, meal_type)
        if item is None:
            item = MealPlanItem(week_number=week_number, day_of_week=day_of_week, meal_type=meal_type)
            self.db.add(item)
        item.recipe_id = recipe_id or None
        item.custom_meal = custom_meal
        item.notes = notes
        item.is_active = True

        try:
            self.db.commit()
        except IntegrityError:
            # lost a race for the slot; update the winner's row instead
            self.db.rollback()
            item = self._find_slot(week_number, day_of_week, meal_type)
            item.recipe_id = recipe_id or None
            item.custom_meal = custom_meal
            item.notes = notes
            item.is_active = True
            self.db.commit()
        return item

    def _find_slot(self, week_number: int, day: str, meal_type: str) -> MealPlanItem | None:
        return self.db.query(MealPlanItem).filter(
            MealPlanItem.week_number == week_number,
            MealPlanItem.day_of_week == day,
            MealPlanItem.meal_type == meal_type,
        ).first()


class DeleteMealPlanItemUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        item_id: int | None = None,
        week_number: int | None = None,
        day_of_week: str | None = None,
        meal_type: str | None = None,
    ) -> None:
        query = self.db.query(MealPlanItem)
        if item_id is not None:
            query = query.filter(MealPlanItem.id == item_id)
        elif week_number is not None and day_of_week and meal_type:
            query = query.filter(
                MealPlanItem.week_number == week_number,
                MealPlanItem.day_of_week == day_of_week,
                MealPlanItem.meal_type == meal_type,
            )
        else:
            raise MealPlanValidationError("Either id or (weekNumber, dayOfWeek, mealType) is required")

        item = query.first()
        if item is None:
            raise NotFound("Meal plan item not found")
        self.db.delete(item)
        self.db.commit()


def generate_shopping_list(db: Session, weeks_param: str | None = None) -> dict[str, Any]:
    """
    Aggregate ingredients of recipe-backed items in the given weeks

    Args:
        weeks_param: comma separated week numbers, default "2,3,4"

    Raises:
        MealPlanValidationError: no valid week in weeks_param
    """
    try:
        weeks = parse_weeks(weeks_param)
    except ValueError as e:
        raise MealPlanValidationError(str(e))

    items = (
        db.query(MealPlanItem)
        .filter(
            MealPlanItem.week_number.in_(weeks),
            MealPlanItem.is_active == True,  # noqa: E712
            MealPlanItem.recipe_id.isnot(None),
        )
        .order_by(MealPlanItem.id.asc())
        .all()
    )
    recipe_ids = sorted({i.recipe_id for i in items})
    recipes = {r.id: r for r in db.query(Recipe).filter(Recipe.id.in_(recipe_ids)).all()} if recipe_ids else {}

    # each planned meal contributes its recipe's ingredients once
    sources = []
    for item in items:
        recipe = recipes.get(item.recipe_id)
        if recipe is None or not isinstance(recipe.ingredients, list):
            continue
        sources.append((recipe.name, recipe.ingredients))

    aggregated = aggregate_ingredients(sources)
    logger.info("Generated shopping list: weeks=%s items=%d", weeks, len(aggregated))
    return {
        "weeks": weeks,
        "totalItems": len(aggregated),
        "items": [a.to_dict() for a in aggregated],
        "byStore": group_by(aggregated, "store"),
        "byCategory": group_by(aggregated, "category"),
        "stores": STORES,
    }
