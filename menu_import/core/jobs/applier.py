"""
Apply phase: materializes the user's selected changes into the store's menu.

Each entity write commits on its own. A failure part way through leaves the
earlier writes in place.
"""

import logging
from typing import Dict, List, Mapping, Optional, Tuple

from menu_import.database.repositories import MenuRepository
from menu_import.models.domain import (
    AppliedCounts,
    ApplySelection,
    CategoryComparison,
    MenuComparisonData,
    OptionGroupComparison,
)

logger = logging.getLogger(__name__)

SelectionKey = Tuple[str, str]


def index_selections(selections: List[ApplySelection]) -> Dict[SelectionKey, ApplySelection]:
    """Apply-flagged selections keyed by (type, extracted name); first one wins."""
    index: Dict[SelectionKey, ApplySelection] = {}
    for selection in selections:
        if selection.action == "apply":
            index.setdefault((selection.type, selection.extracted_name), selection)
    return index


def _target_id(selection: ApplySelection, existing_id: Optional[str]) -> Optional[str]:
    return selection.matched_entity_id or existing_id


def _vat(code: Optional[str], vat_map: Mapping[str, str]) -> Optional[str]:
    return vat_map.get(code) if code else None


class ChangeApplier:
    """Upserts selected categories, items and option groups for one store"""

    def __init__(self, menus: MenuRepository, store_id: str, vat_code_to_id: Mapping[str, str]):
        self.menus = menus
        self.store_id = store_id
        self.vat_map = dict(vat_code_to_id)

    def apply(
        self, comparison: MenuComparisonData, selections: List[ApplySelection]
    ) -> AppliedCounts:
        selected = index_selections(selections)
        counts = AppliedCounts()

        for category in comparison.categories:
            self._apply_category(category, selected, counts)

        for group in comparison.option_groups:
            selection = selected.get(("optionGroup", group.extracted.name))
            if selection is not None:
                self._apply_option_group(group, selection)
                counts.option_groups += 1

        return counts

    def _apply_category(
        self,
        comparison: CategoryComparison,
        selected: Mapping[SelectionKey, ApplySelection],
        counts: AppliedCounts,
    ) -> None:
        extracted = comparison.extracted
        selection = selected.get(("category", extracted.name))
        if selection is None:
            # Items under a category that was not applied would be orphaned
            skipped = [
                i.extracted.name
                for i in comparison.items
                if ("item", i.extracted.name) in selected
            ]
            if skipped:
                logger.info(
                    "Skipping %d item(s) of unapplied category %r", len(skipped), extracted.name
                )
            return

        category_id = self.menus.upsert_category(
            self.store_id,
            _target_id(selection, comparison.existing_id),
            name=extracted.name,
            description=extracted.description,
            default_vat_group_id=_vat(extracted.default_vat_group_code, self.vat_map),
        )
        counts.categories += 1

        for item in comparison.items:
            item_selection = selected.get(("item", item.extracted.name))
            if item_selection is None:
                continue
            self.menus.upsert_item(
                self.store_id,
                category_id,
                _target_id(item_selection, item.existing_id),
                name=item.extracted.name,
                description=item.extracted.description,
                price=item.extracted.price,
                allergens=item.extracted.allergens,
                vat_group_id=_vat(item.extracted.vat_group_code, self.vat_map),
            )
            counts.items += 1

    def _apply_option_group(
        self, comparison: OptionGroupComparison, selection: ApplySelection
    ) -> None:
        extracted = comparison.extracted
        self.menus.upsert_option_group(
            self.store_id,
            _target_id(selection, comparison.existing_id),
            name=extracted.name,
            description=extracted.description,
            type=extracted.type,
            is_required=extracted.is_required,
            choices=[c.model_dump(by_alias=True) for c in extracted.choices],
            applies_to=extracted.applies_to,
        )
