"""
Recipe and rating endpoints
"""
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import Field, field_validator
from sqlalchemy.orm import Session

from famboard.api.deps import AuthContext, ensure_self_or_permission, get_db, require_authenticated, require_permission
from famboard.api.schemas import CamelModel
from famboard.application.errors import ValidationFailed
from famboard.application.recipes import (
    CreateRecipeUseCase, DeleteRatingUseCase, DeleteRecipeUseCase, RateRecipeUseCase,
    UpdateRecipeUseCase, get_recipe_detail, get_recipe_or_404, list_ratings, list_recipes,
    serialize_rating,
)
from famboard.domain.member import PERM_MANAGE_FAMILY
from famboard.utils.validation import DESCRIPTION_MAX, TITLE_MAX, strip_required


router = APIRouter(prefix="/api/v1/recipes", tags=["recipes"])


# === Request/Response models ===

class IngredientModel(CamelModel):
    name: str = Field(min_length=1, max_length=TITLE_MAX)
    quantity: str | None = None
    unit: str | None = None
    notes: str | None = None

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_as_text(cls, v: Any) -> str | None:
        return str(v) if v is not None else v


class CreateRecipeRequest(CamelModel):
    name: str = Field(max_length=TITLE_MAX)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX)
    cuisine: str | None = Field(default=None, max_length=64)
    icon: str | None = Field(default=None, max_length=32)
    prep_time: int | None = Field(default=None, ge=0)
    cook_time: int | None = Field(default=None, ge=0)
    servings: int | None = Field(default=None, ge=1)
    difficulty: str | None = None
    ingredients: list[IngredientModel]
    instructions: list[str]
    tips: list[str] | None = None
    tags: list[str] | None = None
    meal_types: list[str] | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return strip_required(v)


class UpdateRecipeRequest(CamelModel):
    name: str | None = Field(default=None, max_length=TITLE_MAX)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX)
    cuisine: str | None = Field(default=None, max_length=64)
    icon: str | None = Field(default=None, max_length=32)
    prep_time: int | None = Field(default=None, ge=0)
    cook_time: int | None = Field(default=None, ge=0)
    servings: int | None = Field(default=None, ge=1)
    difficulty: str | None = None
    ingredients: list[IngredientModel] | None = None
    instructions: list[str] | None = None
    tips: list[str] | None = None
    tags: list[str] | None = None
    meal_types: list[str] | None = None
    is_active: bool | None = None


class RateRecipeRequest(CamelModel):
    member_id: int | None = None
    rating: int = Field(ge=1, le=5)
    notes: str | None = Field(default=None, max_length=DESCRIPTION_MAX)
    would_make_again: bool | None = None


def _recipe_fields(req: CreateRecipeRequest | UpdateRecipeRequest, partial: bool) -> dict:
    data = req.model_dump(exclude_unset=True) if partial else req.model_dump(exclude_none=True)
    if data.get("ingredients") is not None:
        # stored as plain dicts
        data["ingredients"] = [i.model_dump() for i in req.ingredients]
    return data


# === Endpoints ===

@router.get("")
def get_recipes(
    cuisine: str | None = None,
    tag: str | None = None,
    search: str | None = None,
    active_only: bool = Query(default=True, alias="activeOnly"),
    min_rating: float | None = Query(default=None, alias="minRating", ge=0, le=5),
    db: Session = Depends(get_db),
):
    recipes = list_recipes(
        db, cuisine=cuisine, tag=tag, search=search, active_only=active_only, min_rating=min_rating,
    )
    return {"recipes": recipes}


@router.post("", status_code=201)
def create_recipe(
    req: CreateRecipeRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_MANAGE_FAMILY)),
):
    recipe = CreateRecipeUseCase(db).execute(**_recipe_fields(req, partial=False))
    return {"recipe": get_recipe_detail(db, recipe.id)}


@router.get("/{recipe_id}")
def get_recipe(recipe_id: int, db: Session = Depends(get_db)):
    return {"recipe": get_recipe_detail(db, recipe_id)}


@router.put("/{recipe_id}")
def update_recipe(
    recipe_id: int,
    req: UpdateRecipeRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_MANAGE_FAMILY)),
):
    UpdateRecipeUseCase(db).execute(recipe_id, _recipe_fields(req, partial=True))
    return {"recipe": get_recipe_detail(db, recipe_id)}


@router.delete("/{recipe_id}")
def delete_recipe(
    recipe_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_MANAGE_FAMILY)),
):
    DeleteRecipeUseCase(db).execute(recipe_id)
    return {"success": True}


@router.get("/{recipe_id}/rate")
def get_ratings(recipe_id: int, db: Session = Depends(get_db)):
    get_recipe_or_404(db, recipe_id)
    return {"ratings": list_ratings(db, recipe_id)}


@router.post("/{recipe_id}/rate")
def rate_recipe(
    recipe_id: int,
    req: RateRecipeRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_authenticated),
):
    """Add or replace the caller's rating; returns the recipe's new stats"""
    member_id = req.member_id if req.member_id is not None else auth.member_id
    if member_id is None:
        raise ValidationFailed("memberId is required")
    ensure_self_or_permission(auth, member_id, PERM_MANAGE_FAMILY)
    rating, stats = RateRecipeUseCase(db).execute(
        recipe_id, member_id, req.rating, notes=req.notes, would_make_again=req.would_make_again,
    )
    return {"rating": serialize_rating(rating), "recipeStats": stats}


@router.delete("/{recipe_id}/rate")
def delete_rating(
    recipe_id: int,
    member_id: int | None = Query(default=None, alias="memberId"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_authenticated),
):
    member_id = member_id if member_id is not None else auth.member_id
    if member_id is None:
        raise ValidationFailed("memberId is required")
    ensure_self_or_permission(auth, member_id, PERM_MANAGE_FAMILY)
    DeleteRatingUseCase(db).execute(recipe_id, member_id)
    return {"success": True}
