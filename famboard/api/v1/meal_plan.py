"""
Meal plan and generated shopping list endpoints
"""
from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.orm import Session

from famboard.api.deps import AuthContext, get_db, require_permission
from famboard.api.schemas import CamelModel
from famboard.application.meal_plan import (
    DeleteMealPlanItemUseCase, UpsertMealPlanItemUseCase, generate_shopping_list, get_meal_plan,
    get_todays_meals,
)
from famboard.application.shopping import AddShoppingItemsUseCase
from famboard.domain.member import PERM_MANAGE_FAMILY, PERM_SHOPPING_CREATE
from famboard.utils.validation import DESCRIPTION_MAX, TITLE_MAX


router = APIRouter(prefix="/api/v1/meal-plan", tags=["meal-plan"])


# === Request/Response models ===

class MealPlanItemRequest(CamelModel):
    week_number: int = Field(ge=1, le=4)
    day_of_week: str
    meal_type: str
    recipe_id: int | None = None
    custom_meal: str | None = Field(default=None, max_length=TITLE_MAX)
    notes: str | None = Field(default=None, max_length=DESCRIPTION_MAX)


class GeneratedItem(CamelModel):
    name: str = Field(min_length=1, max_length=TITLE_MAX)
    quantity: int | None = None
    unit: str | None = Field(default=None, max_length=32)
    store: str | None = None
    notes: str | None = Field(default=None, max_length=500)


class AddToShoppingListRequest(CamelModel):
    items: list[GeneratedItem]
    clear_existing: bool = False


# === Endpoints ===

@router.get("")
def get_plan(week: int | None = Query(default=None, ge=1, le=4), db: Session = Depends(get_db)):
    return get_meal_plan(db, week)


@router.post("", status_code=201)
def upsert_plan_item(
    req: MealPlanItemRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_MANAGE_FAMILY)),
):
    item = UpsertMealPlanItemUseCase(db).execute(
        week_number=req.week_number,
        day_of_week=req.day_of_week,
        meal_type=req.meal_type,
        recipe_id=req.recipe_id,
        custom_meal=req.custom_meal,
        notes=req.notes,
    )
    plan = get_meal_plan(db, item.week_number)
    return {"item": next(i for i in plan["items"] if i["id"] == item.id)}


@router.delete("")
def delete_plan_item(
    id: int | None = None,
    week_number: int | None = Query(default=None, alias="weekNumber"),
    day_of_week: str | None = Query(default=None, alias="dayOfWeek"),
    meal_type: str | None = Query(default=None, alias="mealType"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_MANAGE_FAMILY)),
):
    """Delete by id, or by (weekNumber, dayOfWeek, mealType)"""
    DeleteMealPlanItemUseCase(db).execute(
        item_id=id, week_number=week_number, day_of_week=day_of_week, meal_type=meal_type,
    )
    return {"success": True}


@router.get("/today")
def todays_meals(db: Session = Depends(get_db)):
    return get_todays_meals(db)


@router.get("/shopping-list")
def get_shopping_list(weeks: str | None = None, db: Session = Depends(get_db)):
    """Ingredients for the given weeks (default 2,3,4), routed to stores"""
    return generate_shopping_list(db, weeks)


@router.post("/shopping-list", status_code=201)
def add_to_shopping_list(
    req: AddToShoppingListRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_SHOPPING_CREATE)),
):
    created = AddShoppingItemsUseCase(db).execute(
        [item.model_dump() for item in req.items], clear_existing=req.clear_existing,
    )
    return {"success": True, "created": created}
