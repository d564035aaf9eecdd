"""Shopping list items"""
from typing import Any

from sqlalchemy.orm import Session

from famboard.application.errors import NotFound, ValidationFailed
from famboard.domain.shopping_routing import STORE_OTHER, STORES
from famboard.infrastructure.db.models import ShoppingItem

SHOPPING_FIELDS = ["name", "quantity", "unit", "store", "notes", "checked"]


class ShoppingValidationError(ValidationFailed):
    pass


def serialize_shopping_item(item: ShoppingItem) -> dict:
    return {
        "id": item.id,
        "name": item.name,
        "quantity": item.quantity,
        "unit": item.unit,
        "store": item.store,
        "notes": item.notes,
        "checked": item.checked,
    }


def get_item_or_404(db: Session, item_id: int) -> ShoppingItem:
    item = db.query(ShoppingItem).filter(ShoppingItem.id == item_id).first()
    if item is None:
        raise NotFound("Shopping item not found")
    return item


def list_items(db: Session, show_checked: bool = True, store: str | None = None) -> dict:
    """Unchecked first, then by name; also grouped by store"""
    query = db.query(ShoppingItem)
    if not show_checked:
        query = query.filter(ShoppingItem.checked == False)  # noqa: E712
    if store:
        query = query.filter(ShoppingItem.store == store)
    items = query.order_by(ShoppingItem.checked.asc(), ShoppingItem.name.asc()).all()

    by_store: dict[str, list[dict]] = {}
    for item in items:
        by_store.setdefault(item.store, []).append(serialize_shopping_item(item))
    return {
        "items": [serialize_shopping_item(i) for i in items],
        "byStore": by_store,
        "stores": STORES,
    }


def _normalize(fields: dict[str, Any]) -> None:
    if "name" in fields:
        fields["name"] = (fields["name"] or "").strip()
        if not fields["name"]:
            raise ShoppingValidationError("Name is required")
    if "quantity" in fields:
        fields["quantity"] = max(1, int(fields["quantity"] or 1))
    if "store" in fields:
        store = (fields["store"] or STORE_OTHER).upper()
        if store not in STORES:
            raise ShoppingValidationError(f"store must be one of: {', '.join(STORES)}")
        fields["store"] = store


class AddShoppingItemUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        name: str,
        quantity: int = 1,
        unit: str | None = None,
        store: str = STORE_OTHER,
        notes: str | None = None,
    ) -> ShoppingItem:
        fields = {"name": name, "quantity": quantity, "unit": unit, "store": store, "notes": notes}
        _normalize(fields)
        item = ShoppingItem(checked=False, **fields)
        self.db.add(item)
        self.db.commit()
        return item


class AddShoppingItemsUseCase:
    """Bulk insert (generated list); clear_existing drops unchecked items first"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, items: list[dict[str, Any]], clear_existing: bool = False) -> int:
        if clear_existing:
            self.db.query(ShoppingItem).filter(ShoppingItem.checked == False).delete(  # noqa: E712
                synchronize_session=False
            )
        created = 0
        for raw in items:
            fields = {
                "name": raw.get("name"),
                "quantity": raw.get("quantity") or 1,
                "unit": raw.get("unit"),
                "store": raw.get("store") or STORE_OTHER,
                "notes": raw.get("notes"),
            }
            _normalize(fields)
            self.db.add(ShoppingItem(checked=False, **fields))
            created += 1
        self.db.commit()
        return created


class UpdateShoppingItemUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, item_id: int, changes: dict[str, Any]) -> ShoppingItem:
        item = get_item_or_404(self.db, item_id)
        unknown = set(changes) - set(SHOPPING_FIELDS)
        if unknown:
            raise ShoppingValidationError(f"Unknown shopping fields: {', '.join(sorted(unknown))}")
        _normalize(changes)
        for key, value in changes.items():
            setattr(item, key, value)
        self.db.commit()
        return item


class DeleteShoppingItemUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, item_id: int) -> None:
        item = get_item_or_404(self.db, item_id)
        self.db.delete(item)
        self.db.commit()


class ClearCheckedItemsUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self) -> int:
        deleted = (
            self.db.query(ShoppingItem)
            .filter(ShoppingItem.checked == True)  # noqa: E712
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted
