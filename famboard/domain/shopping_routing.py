"""
Ingredient routing for the generated shopping list

Both tables are plain data: a store or category change is a table edit.
"""
import re
from dataclasses import dataclass, field
from typing import Any, Iterable


# Stores
STORE_COSTCO = "COSTCO"
STORE_WINCO = "WINCO"
STORE_WALMART = "WALMART"
STORE_TRADER_JOES = "TRADER_JOES"
STORE_RANCH_99 = "RANCH_99"
STORE_CARDENAS = "CARDENAS"
STORE_SAFEWAY = "SAFEWAY"
STORE_TARGET = "TARGET"
STORE_OTHER = "OTHER"

STORES = [
    STORE_COSTCO,
    STORE_WINCO,
    STORE_WALMART,
    STORE_TRADER_JOES,
    STORE_RANCH_99,
    STORE_CARDENAS,
    STORE_SAFEWAY,
    STORE_TARGET,
    STORE_OTHER,
]

DEFAULT_STORE = STORE_WINCO


@dataclass(frozen=True)
class StoreRule:
    store: str
    priority: int  # lower wins
    keywords: tuple[str, ...]


STORE_RULES: tuple[StoreRule, ...] = (
    StoreRule(STORE_COSTCO, 1, (
        "chicken breast", "chicken thigh", "steak", "ny steak", "ground beef", "pork",
        "salmon", "shrimp", "eggs", "greek yogurt", "cheese", "butter", "olive oil",
        "avocado oil",
    )),
    StoreRule(STORE_RANCH_99, 1, (
        "soy sauce", "tamari", "sesame oil", "rice vinegar", "fish sauce", "hoisin",
        "sriracha", "ginger", "bok choy", "napa cabbage", "rice noodle", "tofu", "miso",
        "nori", "wasabi", "sake", "mirin",
    )),
    StoreRule(STORE_CARDENAS, 1, (
        "chipotle", "adobo", "tomatillo", "cotija", "queso fresco", "chorizo", "carnitas",
        "al pastor", "tortilla", "masa", "poblano", "serrano", "habanero", "achiote",
        "epazote",
    )),
    StoreRule(STORE_TRADER_JOES, 2, (
        "everything bagel", "cauliflower rice", "riced cauliflower", "tzatziki", "hummus",
        "pita", "feta",
    )),
    StoreRule(STORE_WINCO, 1, (
        "romaine", "lettuce", "spinach", "cilantro", "lime", "lemon", "avocado", "tomato",
        "onion", "garlic", "bell pepper", "jalapeño", "cabbage", "broccoli", "zucchini",
        "squash", "carrot", "celery", "cucumber", "mushroom",
    )),
    StoreRule(STORE_WALMART, 2, (
        "salt", "pepper", "cumin", "paprika", "oregano", "bay leaf", "cinnamon", "flour",
        "sugar", "rice", "pasta", "beans", "canned", "broth", "stock", "vinegar", "mustard",
        "mayo", "ketchup",
    )),
)


# Categories, evaluated in order; first match wins
CATEGORY_OTHER = "Other"

CATEGORY_RULES: tuple[tuple[str, re.Pattern], ...] = (
    ("Proteins", re.compile(r"chicken|beef|steak|pork|fish|salmon|shrimp|chorizo|carnitas")),
    ("Dairy", re.compile(r"egg|yogurt|cheese|butter|cream|milk|sour cream")),
    ("Produce", re.compile(
        r"lettuce|romaine|spinach|cilantro|cabbage|broccoli|carrot|onion|garlic|tomato"
        r"|pepper|avocado|lime|lemon|cucumber|zucchini|mushroom|celery"
    )),
    ("Grains", re.compile(r"rice|pasta|flour|tortilla|bread|noodle")),
    ("Pantry", re.compile(r"oil|vinegar|soy|sauce|broth|stock|mayo|mustard|salsa")),
    ("Spices", re.compile(r"salt|pepper|cumin|paprika|oregano|spice|seasoning")),
    ("Legumes", re.compile(r"bean|lentil|chickpea")),
)


def _keyword_matches(name: str, keyword: str) -> bool:
    return keyword in name or name in keyword


def route_store(ingredient_name: str, rules: Iterable[StoreRule] = STORE_RULES) -> str:
    """
    Pick the store for an ingredient

    Lowest priority number wins; among equal priorities the earliest rule
    in table order wins. Unmatched names go to DEFAULT_STORE.
    """
    name = ingredient_name.strip().lower()
    if not name:
        return DEFAULT_STORE

    best: StoreRule | None = None
    for rule in rules:
        if best is not None and rule.priority >= best.priority:
            continue
        if any(_keyword_matches(name, kw) for kw in rule.keywords):
            best = rule
    return best.store if best else DEFAULT_STORE


def categorize(ingredient_name: str) -> str:
    name = ingredient_name.lower()
    for category, pattern in CATEGORY_RULES:
        if pattern.search(name):
            return category
    return CATEGORY_OTHER


@dataclass
class AggregatedIngredient:
    name: str
    store: str
    category: str
    quantities: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "store": self.store,
            "category": self.category,
            "quantities": list(self.quantities),
        }


def aggregate_ingredients(
    recipes: Iterable[tuple[str, list[dict[str, Any]]]],
) -> list[AggregatedIngredient]:
    """
    Merge ingredients across recipes

    Args:
        recipes: (recipe_name, ingredients) pairs; ingredients are
            {"name", "quantity", "unit", "notes"} dicts

    Names merge case-insensitively after trimming; the first spelling seen
    is kept. Quantities are collected per recipe, not unit-converted.
    Result is sorted by category, store, name.
    """
    merged: dict[str, AggregatedIngredient] = {}

    for recipe_name, ingredients in recipes:
        for ing in ingredients or []:
            if not isinstance(ing, dict):
                continue
            raw_name = str(ing.get("name") or "").strip()
            if not raw_name:
                continue
            key = raw_name.lower()
            entry = merged.get(key)
            if entry is None:
                entry = AggregatedIngredient(
                    name=raw_name,
                    store=route_store(raw_name),
                    category=categorize(raw_name),
                )
                merged[key] = entry
            entry.quantities.append({
                "quantity": ing.get("quantity"),
                "unit": ing.get("unit"),
                "recipe": recipe_name,
            })

    return sorted(merged.values(), key=lambda i: (i.category, i.store, i.name.lower()))


def group_by(items: Iterable[AggregatedIngredient], attr: str) -> dict[str, list[dict[str, Any]]]:
    grouped: dict[str, list[dict[str, Any]]] = {}
    for item in items:
        grouped.setdefault(getattr(item, attr), []).append(item.to_dict())
    return grouped
