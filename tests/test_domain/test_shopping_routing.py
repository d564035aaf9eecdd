"""Tests for ingredient store routing and aggregation"""
from famboard.domain.shopping_routing import (
    DEFAULT_STORE, STORE_COSTCO, STORE_RANCH_99, STORE_TRADER_JOES, STORE_WALMART, STORE_WINCO,
    StoreRule, aggregate_ingredients, categorize, group_by, route_store,
)


class TestRouteStore:
    def test_costco_protein(self):
        assert route_store("Chicken Breast") == STORE_COSTCO

    def test_asian_pantry(self):
        assert route_store("soy sauce") == STORE_RANCH_99

    def test_priority_one_beats_priority_two(self):
        # "rice vinegar" also matches Walmart's "rice" and "vinegar"
        assert route_store("rice vinegar") == STORE_RANCH_99

    def test_priority_two_store(self):
        assert route_store("cumin") == STORE_WALMART
        assert route_store("feta") == STORE_TRADER_JOES

    def test_produce(self):
        assert route_store("garlic") == STORE_WINCO

    def test_unmatched_goes_to_default(self):
        assert route_store("quinoa") == DEFAULT_STORE

    def test_blank_name(self):
        assert route_store("   ") == DEFAULT_STORE

    def test_table_order_breaks_ties(self):
        rules = (
            StoreRule("FIRST", 1, ("apple",)),
            StoreRule("SECOND", 1, ("apple",)),
        )
        assert route_store("apple", rules) == "FIRST"

    def test_custom_table(self):
        rules = (StoreRule("FARM", 3, ("kale",)),)
        assert route_store("kale", rules) == "FARM"


class TestCategorize:
    def test_categories(self):
        assert categorize("chicken breast") == "Proteins"
        assert categorize("Cheddar cheese") == "Dairy"
        assert categorize("black beans") == "Legumes"
        assert categorize("quinoa") == "Other"


class TestAggregate:
    def test_merges_case_insensitively_and_keeps_first_spelling(self):
        result = aggregate_ingredients([
            ("Tacos", [{"name": "Garlic", "quantity": "2", "unit": "cloves"}]),
            ("Stir fry", [{"name": " garlic ", "quantity": "3", "unit": "cloves"}]),
        ])
        assert len(result) == 1
        assert result[0].name == "Garlic"
        assert [q["recipe"] for q in result[0].quantities] == ["Tacos", "Stir fry"]

    def test_skips_nameless_and_malformed_entries(self):
        result = aggregate_ingredients([("Soup", [{"name": ""}, "salt", {"quantity": "1"}])])
        assert result == []

    def test_group_by_store(self):
        items = aggregate_ingredients([("Dinner", [{"name": "salmon"}, {"name": "garlic"}])])
        grouped = group_by(items, "store")
        assert set(grouped) == {STORE_COSTCO, STORE_WINCO}
        assert grouped[STORE_COSTCO][0]["name"] == "salmon"
