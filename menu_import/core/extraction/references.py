"""Hallucination guard for model-asserted references."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from menu_import.models.domain import (
    ExistingCategoryRef,
    ExistingItemRef,
    ExtractedMenuData,
    VatGroupRef,
)


@dataclass(frozen=True)
class KnownReferences:
    """Ids and codes that actually exist for the store being imported into."""

    category_ids: FrozenSet[str] = frozenset()
    item_ids: FrozenSet[str] = frozenset()
    vat_codes: FrozenSet[str] = frozenset()

    @classmethod
    def from_context(
        cls,
        categories: Optional[Iterable[ExistingCategoryRef]] = None,
        items: Optional[Iterable[ExistingItemRef]] = None,
        vat_groups: Optional[Iterable[VatGroupRef]] = None,
    ) -> "KnownReferences":
        return cls(
            category_ids=frozenset(c.id for c in categories or ()),
            item_ids=frozenset(i.id for i in items or ()),
            vat_codes=frozenset(v.code for v in vat_groups or ()),
        )


def _known(value: Optional[str], allowed: FrozenSet[str]) -> Optional[str]:
    return value if value is not None and value in allowed else None


def validate_references(
    extraction: ExtractedMenuData, known: KnownReferences
) -> ExtractedMenuData:
    """Null out every category id, item id or VAT code the store does not have."""
    categories = [
        cat.model_copy(
            update={
                "existing_category_id": _known(cat.existing_category_id, known.category_ids),
                "default_vat_group_code": _known(cat.default_vat_group_code, known.vat_codes),
                "items": [
                    item.model_copy(
                        update={
                            "existing_item_id": _known(item.existing_item_id, known.item_ids),
                            "vat_group_code": _known(item.vat_group_code, known.vat_codes),
                        }
                    )
                    for item in cat.items
                ],
            }
        )
        for cat in extraction.categories
    ]
    return extraction.model_copy(update={"categories": categories})
