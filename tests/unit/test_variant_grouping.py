import pytest
from decimal import Decimal
from types import SimpleNamespace
from app.core.exceptions import ValidationError
from app.models.shared.enums import ItemKind
from app.services.inventory.variant_hierarchy import (
    filter_catalog,
    group,
    item_kind,
    validate_parent_reference,
    variant_display_name,
)

def item(id, name, parent_item_id=None, variant_name=None, stock="0"):
    return SimpleNamespace(
        id=id,
        name=name,
        parent_item_id=parent_item_id,
        variant_name=variant_name,
        current_stock=Decimal(stock),
    )

def flatten(display_items):
    rows = []
    for entry in display_items:
        rows.append(entry.item)
        rows.extend(entry.variants)
    return rows

@pytest.fixture
def catalog():
    return [
        item(1, "Bread"),
        item(2, "Eggs"),
        item(3, "Eggs", parent_item_id=2, variant_name="Tray", stock="4"),
        item(4, "Eggs", parent_item_id=2, variant_name="dozen", stock="10"),
        item(5, "Milk"),
        item(6, "Milk", parent_item_id=5, variant_name="1L", stock="3"),
    ]

class TestVariantGrouping:
    """Parent/variant folding of the catalog"""

    def test_parents_come_first_then_standalone(self, catalog):
        grouped = group(catalog)
        assert [(g.item.id, g.is_parent) for g in grouped] == [(2, True), (5, True), (1, False)]

    def test_variants_are_sorted_by_name_case_insensitively(self, catalog):
        eggs = group(catalog)[0]
        assert [v.variant_name for v in eggs.variants] == ["dozen", "Tray"]
        assert eggs.variant_count == 2
        assert eggs.total_variant_stock == Decimal("14")
        assert eggs.variant_names() == ["Eggs - dozen", "Eggs - Tray"]

    def test_accented_variants_sort_by_base_letter(self):
        grouped = group([
            item(10, "Cake"),
            item(11, "Cake", parent_item_id=10, variant_name="Zebra"),
            item(12, "Cake", parent_item_id=10, variant_name="Éclair"),
            item(13, "Cake", parent_item_id=10, variant_name="apple"),
        ])
        assert [v.variant_name for v in grouped[0].variants] == ["apple", "Éclair", "Zebra"]

    def test_grouping_is_idempotent(self, catalog):
        once = group(catalog)
        twice = group(flatten(once))
        assert [(g.item.id, [v.id for v in g.variants]) for g in twice] == \
            [(g.item.id, [v.id for v in g.variants]) for g in once]

    def test_orphan_variants_are_dropped(self):
        grouped = group([item(1, "Bread"), item(9, "Tea", parent_item_id=8, variant_name="Green")])
        assert [g.item.id for g in grouped] == [1]

    def test_input_is_not_mutated(self, catalog):
        before = [(i.id, i.parent_item_id) for i in catalog]
        group(catalog)
        assert [(i.id, i.parent_item_id) for i in catalog] == before

    def test_display_name(self):
        assert variant_display_name("Eggs", "Tray") == "Eggs - Tray"

class TestCatalogRules:
    """Item kinds, filters and parent validation"""

    def test_item_kind(self, catalog):
        assert item_kind(catalog[0], has_variants=False) == ItemKind.STANDALONE
        assert item_kind(catalog[1], has_variants=True) == ItemKind.PARENT
        assert item_kind(catalog[2], has_variants=False) == ItemKind.VARIANT

    def test_parents_only(self, catalog):
        assert [i.id for i in filter_catalog(catalog, parents_only=True)] == [2, 5]

    def test_sellable_only_drops_parents(self, catalog):
        assert [i.id for i in filter_catalog(catalog, sellable_only=True)] == [1, 3, 4, 6]

    def test_variant_cannot_be_a_parent(self, catalog):
        with pytest.raises(ValidationError) as exc:
            validate_parent_reference(catalog[2])
        assert exc.value.detail == "Parent item cannot be a variant itself"

    def test_top_level_item_can_be_a_parent(self, catalog):
        validate_parent_reference(catalog[0])
