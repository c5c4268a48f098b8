"""
Parent/variant grouping of catalog items.

Pure functions over item rows (ORM objects or anything with the same
attributes). Nothing here touches the session or mutates its input.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Sequence
from pyuca import Collator
from app.core.exceptions import ValidationError
from app.models.shared.enums import ItemKind


def variant_display_name(parent_name: str, variant_name: Optional[str]) -> str:
    return f"{parent_name} - {variant_name or ''}"


@lru_cache(maxsize=1)
def _collator() -> Collator:
    # Loads the Unicode collation table once; ordering matches the root locale
    return Collator()


def _variant_sort_key(item: Any):
    return _collator().sort_key(item.variant_name or "")


@dataclass
class DisplayItem:
    """A standalone item, or a parent carrying its sorted variants"""
    item: Any
    is_parent: bool = False
    variants: List[Any] = field(default_factory=list)

    @property
    def variant_count(self) -> int:
        return len(self.variants)

    @property
    def total_variant_stock(self) -> Decimal:
        return sum((Decimal(v.current_stock or 0) for v in self.variants), Decimal("0"))

    def variant_names(self) -> List[str]:
        return [variant_display_name(self.item.name, v.variant_name) for v in self.variants]


def group(items: Sequence[Any]) -> List[DisplayItem]:
    """
    Fold a flat item list into parents (with variants) and standalone items.

    Parents come first, then standalone items, each keeping input order.
    Variants whose parent is not in `items` are dropped from the output.
    """
    variants_by_parent: Dict[int, List[Any]] = {}
    candidates = []
    for item in items:
        if item.parent_item_id:
            variants_by_parent.setdefault(item.parent_item_id, []).append(item)
        else:
            candidates.append(item)

    parents = []
    standalone = []
    for item in candidates:
        variants = variants_by_parent.get(item.id)
        if variants:
            parents.append(DisplayItem(item=item, is_parent=True, variants=sorted(variants, key=_variant_sort_key)))
        else:
            standalone.append(DisplayItem(item=item))
    return parents + standalone


def item_kind(item: Any, has_variants: bool) -> ItemKind:
    if item.parent_item_id:
        return ItemKind.VARIANT
    return ItemKind.PARENT if has_variants else ItemKind.STANDALONE


def parent_ids(items: Iterable[Any]) -> set:
    """Ids referenced as a parent by at least one item in `items`"""
    return {item.parent_item_id for item in items if item.parent_item_id}


def validate_parent_reference(parent: Any) -> None:
    """Only one level of nesting: a variant can never be a parent"""
    if parent.parent_item_id:
        raise ValidationError("Parent item cannot be a variant itself")


def filter_catalog(
    items: Sequence[Any],
    parents_only: bool = False,
    sellable_only: bool = False,
    with_variants: Optional[set] = None,
) -> List[Any]:
    """
    parents_only keeps items that have at least one variant; sellable_only
    drops them, since a parent is never sold directly. Variants are looked up
    in `items` unless `with_variants` is given.
    """
    if with_variants is None:
        with_variants = parent_ids(items)
    if parents_only:
        return [item for item in items if item.id in with_variants]
    if sellable_only:
        return [item for item in items if item.id not in with_variants]
    return list(items)
