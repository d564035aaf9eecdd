"""
Shopping list endpoints
"""
from fastapi import APIRouter, Depends, Query
from pydantic import Field, field_validator
from sqlalchemy.orm import Session

from famboard.api.deps import AuthContext, get_db, require_permission
from famboard.api.schemas import CamelModel, provided_fields
from famboard.application.errors import PermissionDenied
from famboard.application.shopping import (
    AddShoppingItemUseCase, ClearCheckedItemsUseCase, DeleteShoppingItemUseCase,
    UpdateShoppingItemUseCase, list_items, serialize_shopping_item,
)
from famboard.domain.member import (
    PERM_SHOPPING_CHECK, PERM_SHOPPING_CREATE, PERM_SHOPPING_DELETE, PERM_SHOPPING_EDIT, has_permission,
)
from famboard.domain.shopping_routing import STORE_OTHER
from famboard.utils.validation import TITLE_MAX, strip_required


router = APIRouter(prefix="/api/v1/shopping", tags=["shopping"])


# === Request/Response models ===

class AddItemRequest(CamelModel):
    name: str = Field(max_length=TITLE_MAX)
    quantity: int = 1
    unit: str | None = Field(default=None, max_length=32)
    store: str = STORE_OTHER
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return strip_required(v)


class UpdateItemRequest(CamelModel):
    name: str | None = Field(default=None, max_length=TITLE_MAX)
    quantity: int | None = None
    unit: str | None = Field(default=None, max_length=32)
    store: str | None = None
    notes: str | None = Field(default=None, max_length=500)
    checked: bool | None = None


# === Endpoints ===

@router.get("")
def get_shopping_list(
    show_checked: bool = Query(default=True, alias="showChecked"),
    store: str | None = None,
    db: Session = Depends(get_db),
):
    """Items (unchecked first) and the same items grouped by store"""
    return list_items(db, show_checked=show_checked, store=store)


@router.post("", status_code=201)
def add_item(
    req: AddItemRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_SHOPPING_CREATE)),
):
    item = AddShoppingItemUseCase(db).execute(
        name=req.name, quantity=req.quantity, unit=req.unit, store=req.store, notes=req.notes,
    )
    return {"item": serialize_shopping_item(item)}


@router.delete("/checked")
def clear_checked(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_SHOPPING_DELETE)),
):
    deleted = ClearCheckedItemsUseCase(db).execute()
    return {"success": True, "deleted": deleted}


@router.put("/{item_id}")
def update_item(
    item_id: int,
    req: UpdateItemRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_SHOPPING_CHECK)),
):
    """Checking an item off needs shopping:check; other edits need shopping:edit"""
    changes = provided_fields(req)
    if set(changes) - {"checked"} and not has_permission(auth.role, PERM_SHOPPING_EDIT):
        raise PermissionDenied("Permission denied", required=PERM_SHOPPING_EDIT)
    item = UpdateShoppingItemUseCase(db).execute(item_id, changes)
    return {"item": serialize_shopping_item(item)}


@router.delete("/{item_id}")
def delete_item(
    item_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_SHOPPING_DELETE)),
):
    DeleteShoppingItemUseCase(db).execute(item_id)
    return {"success": True}
