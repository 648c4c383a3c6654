"""
Menu Comparer
Compares an extracted menu with the store's existing menu and classifies
every category, item and option group as create / update / skip.

Categories and items are matched only through the model's reference ids
(already checked by the hallucination guard); option groups carry no ids and
are matched by name similarity. The comparison is a pure function of its
inputs.
"""

import json
from typing import Dict, List, Mapping, Optional

from menu_import.core.diff.similarity import calculate_similarity
from menu_import.models.domain import (
    CategoryComparison,
    ComparisonSummary,
    DiffAction,
    ExistingCategory,
    ExistingItem,
    ExistingMenuData,
    ExistingOptionGroup,
    ExtractedCategory,
    ExtractedItem,
    ExtractedMenuData,
    ExtractedOptionGroup,
    FieldChange,
    ItemComparison,
    MenuComparisonData,
    OptionGroupComparison,
)

# Option groups at or above this similarity are treated as the same group
THRESHOLD_UPDATE = 0.7


def compare_menus(
    extracted: ExtractedMenuData,
    existing: ExistingMenuData,
    vat_code_to_id: Optional[Mapping[str, str]] = None,
) -> MenuComparisonData:
    """
    Compare extracted menu with existing menu.

    Args:
        extracted: Guarded extraction result
        existing: Snapshot of the store's current menu
        vat_code_to_id: VAT group code -> id, used to compare VAT assignments

    Returns:
        Full comparison with summary counts
    """
    vat_map = dict(vat_code_to_id or {})

    categories = compare_categories(extracted.categories, existing.categories, vat_map)
    option_groups = compare_option_groups(extracted.option_groups, existing.option_groups)

    return MenuComparisonData(
        extracted_menu=extracted,
        categories=categories,
        option_groups=option_groups,
        summary=summarize(categories, option_groups),
    )


def summarize(
    categories: List[CategoryComparison], option_groups: List[OptionGroupComparison]
) -> ComparisonSummary:
    items = [item for cat in categories for item in cat.items]
    return ComparisonSummary(
        total_categories=len(categories),
        new_categories=_count(categories, "create"),
        updated_categories=_count(categories, "update"),
        total_items=len(items),
        new_items=_count(items, "create"),
        updated_items=_count(items, "update"),
        total_option_groups=len(option_groups),
        new_option_groups=_count(option_groups, "create"),
        updated_option_groups=_count(option_groups, "update"),
    )


def _count(comparisons, action: DiffAction) -> int:
    return sum(1 for c in comparisons if c.action == action)


def _classify(matched: bool, has_changes: bool) -> DiffAction:
    if not matched:
        return "create"
    return "update" if has_changes else "skip"


def _resolve_vat(code: Optional[str], vat_map: Mapping[str, str]) -> Optional[str]:
    # Unknown codes count as "no VAT group", same as null
    return vat_map.get(code) if code else None


def _allergen_key(allergens: Optional[List[str]]) -> str:
    return json.dumps(sorted(allergens or []))


def _flatten_items(categories: List[ExistingCategory]) -> Dict[str, ExistingItem]:
    # Items may move between categories, so match across all of them
    by_id: Dict[str, ExistingItem] = {}
    for cat in categories:
        for item in cat.items:
            by_id.setdefault(item.id, item)
    return by_id


def compare_categories(
    extracted: List[ExtractedCategory],
    existing: List[ExistingCategory],
    vat_map: Mapping[str, str],
) -> List[CategoryComparison]:
    existing_by_id: Dict[str, ExistingCategory] = {}
    for cat in existing:
        existing_by_id.setdefault(cat.id, cat)
    existing_items = _flatten_items(existing)

    comparisons = []
    for ext_cat in extracted:
        matched = (
            existing_by_id.get(ext_cat.existing_category_id)
            if ext_cat.existing_category_id
            else None
        )
        items = compare_items(ext_cat.items, existing_items, vat_map)

        changes: List[FieldChange] = []
        if matched is not None:
            new_vat_id = _resolve_vat(ext_cat.default_vat_group_code, vat_map)
            if matched.default_vat_group_id != new_vat_id:
                changes.append(
                    FieldChange(
                        field="defaultVatGroupId",
                        old_value=matched.default_vat_group_id,
                        new_value=new_vat_id,
                    )
                )

        has_changes = bool(changes) or any(item.action != "skip" for item in items)
        comparisons.append(
            CategoryComparison(
                extracted=ext_cat,
                existing_id=matched.id if matched else None,
                existing_name=matched.name if matched else None,
                action=_classify(matched is not None, has_changes),
                match_score=1.0 if matched else 0.0,
                changes=changes or None,
                items=items,
            )
        )
    return comparisons


def compare_items(
    extracted: List[ExtractedItem],
    existing_by_id: Mapping[str, ExistingItem],
    vat_map: Mapping[str, str],
) -> List[ItemComparison]:
    comparisons = []
    for ext_item in extracted:
        matched = (
            existing_by_id.get(ext_item.existing_item_id)
            if ext_item.existing_item_id
            else None
        )
        changes = diff_item(ext_item, matched, vat_map) if matched else []

        comparisons.append(
            ItemComparison(
                extracted=ext_item,
                existing_id=matched.id if matched else None,
                existing_name=matched.name if matched else None,
                action=_classify(matched is not None, bool(changes)),
                match_score=1.0 if matched else 0.0,
                changes=changes or None,
            )
        )
    return comparisons


def diff_item(
    extracted: ExtractedItem, existing: ExistingItem, vat_map: Mapping[str, str]
) -> List[FieldChange]:
    """Field-level changes between an extracted item and its matched item."""
    changes: List[FieldChange] = []

    if extracted.price != existing.price:
        changes.append(
            FieldChange(field="price", old_value=existing.price, new_value=extracted.price)
        )

    if extracted.name != existing.name:
        changes.append(FieldChange(field="name", old_value=existing.name, new_value=extracted.name))

    if extracted.description != existing.description:
        changes.append(
            FieldChange(
                field="description",
                old_value=existing.description,
                new_value=extracted.description,
            )
        )

    if _allergen_key(extracted.allergens) != _allergen_key(existing.allergens):
        changes.append(
            FieldChange(
                field="allergens",
                old_value=existing.allergens,
                new_value=extracted.allergens,
            )
        )

    new_vat_id = _resolve_vat(extracted.vat_group_code, vat_map)
    if existing.vat_group_id != new_vat_id:
        changes.append(
            FieldChange(field="vatGroupId", old_value=existing.vat_group_id, new_value=new_vat_id)
        )

    return changes


def compare_option_groups(
    extracted: List[ExtractedOptionGroup], existing: List[ExistingOptionGroup]
) -> List[OptionGroupComparison]:
    # No field-level diff for option groups: a close enough name is an update
    comparisons = []
    for ext_group in extracted:
        best_match: Optional[ExistingOptionGroup] = None
        best_score = 0.0

        for candidate in existing:
            score = calculate_similarity(ext_group.name, candidate.name)
            if score > best_score:
                best_score = score
                best_match = candidate

        is_update = best_match is not None and best_score >= THRESHOLD_UPDATE
        comparisons.append(
            OptionGroupComparison(
                extracted=ext_group,
                existing_id=best_match.id if is_update else None,
                existing_name=best_match.name if is_update else None,
                action="update" if is_update else "create",
                match_score=best_score,
            )
        )
    return comparisons
