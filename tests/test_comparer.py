"""Tests for the menu comparer."""

from menu_import.core.diff.comparer import THRESHOLD_UPDATE, compare_menus
from menu_import.models.domain import (
    ExistingCategory,
    ExistingItem,
    ExistingMenuData,
    ExistingOptionGroup,
    ExtractedCategory,
    ExtractedItem,
    ExtractedMenuData,
    ExtractedOptionGroup,
)

VAT = {"FOOD": "vat-food", "DRINKS": "vat-drinks"}

EXISTING = ExistingMenuData(
    categories=[
        ExistingCategory(
            id="cat-drinks",
            name="Drinks",
            default_vat_group_id="vat-drinks",
            items=[
                ExistingItem(id="X", name="Cola", price=200, vat_group_id="vat-drinks"),
                ExistingItem(
                    id="W",
                    name="Water",
                    price=150,
                    allergens=["a", "b"],
                    vat_group_id="vat-drinks",
                ),
            ],
        ),
        ExistingCategory(
            id="cat-food",
            name="Food",
            items=[ExistingItem(id="F", name="Fries", price=350, description="Crispy")],
        ),
    ],
    option_groups=[
        ExistingOptionGroup(id="og-topping", name="Topping"),
        ExistingOptionGroup(id="og-drinks", name="Drinks"),
    ],
)


def _item(name, price, existing_item_id=None, **fields):
    return ExtractedItem(name=name, price=price, existing_item_id=existing_item_id, **fields)


def _menu(categories, option_groups=()):
    return ExtractedMenuData(
        categories=categories, option_groups=list(option_groups), confidence=0.9
    )


def test_price_change_is_an_update():
    extracted = _menu(
        [
            ExtractedCategory(
                name="Drinks",
                existing_category_id="cat-drinks",
                default_vat_group_code="DRINKS",
                items=[_item("Cola", 250, "X", vat_group_code="DRINKS")],
            )
        ]
    )

    result = compare_menus(extracted, EXISTING, VAT)
    item = result.categories[0].items[0]

    assert item.action == "update"
    assert item.existing_id == "X"
    assert item.existing_name == "Cola"
    assert item.match_score == 1.0
    assert [c.model_dump() for c in item.changes] == [
        {"field": "price", "old_value": 200, "new_value": 250}
    ]
    # Category fields unchanged, but a child item changed
    assert result.categories[0].action == "update"
    assert result.categories[0].changes is None


def test_unchanged_item_is_skipped():
    extracted = _menu(
        [
            ExtractedCategory(
                name="Drinks",
                existing_category_id="cat-drinks",
                default_vat_group_code="DRINKS",
                items=[
                    _item("Water", 150, "W", allergens=["b", "a"], vat_group_code="DRINKS"),
                ],
            )
        ]
    )

    result = compare_menus(extracted, EXISTING, VAT)

    assert result.categories[0].items[0].action == "skip"
    assert result.categories[0].items[0].changes is None
    assert result.categories[0].action == "skip"


def test_unmatched_entities_are_created():
    extracted = _menu([ExtractedCategory(name="Desserts", items=[_item("Tiramisu", 650)])])

    result = compare_menus(extracted, EXISTING, VAT)
    category = result.categories[0]

    assert category.action == "create"
    assert category.match_score == 0.0
    assert category.existing_id is None
    assert category.items[0].action == "create"
    assert category.items[0].changes is None


def test_item_matches_across_categories():
    # Fries lives under Food but the model moved it to Sides
    extracted = _menu(
        [ExtractedCategory(name="Sides", items=[_item("Fries", 350, "F", description="Crispy")])]
    )

    result = compare_menus(extracted, EXISTING, VAT)

    assert result.categories[0].action == "create"
    assert result.categories[0].items[0].existing_id == "F"
    assert result.categories[0].items[0].action == "skip"


def test_field_level_changes():
    extracted = _menu(
        [
            ExtractedCategory(
                name="Food",
                existing_category_id="cat-food",
                items=[
                    _item(
                        "French Fries",
                        350,
                        "F",
                        allergens=["celery"],
                        vat_group_code="FOOD",
                    )
                ],
            )
        ]
    )

    result = compare_menus(extracted, EXISTING, VAT)
    changes = {c.field: (c.old_value, c.new_value) for c in result.categories[0].items[0].changes}

    assert changes == {
        "name": ("Fries", "French Fries"),
        "description": ("Crispy", None),
        "allergens": (None, ["celery"]),
        "vatGroupId": (None, "vat-food"),
    }


def test_unknown_vat_code_counts_as_absent():
    extracted = _menu(
        [
            ExtractedCategory(
                name="Food",
                existing_category_id="cat-food",
                default_vat_group_code="UNKNOWN",
                items=[_item("Fries", 350, "F", description="Crispy", vat_group_code="UNKNOWN")],
            )
        ]
    )

    result = compare_menus(extracted, EXISTING, VAT)

    assert result.categories[0].items[0].action == "skip"
    assert result.categories[0].action == "skip"


def test_category_vat_change_is_reported():
    extracted = _menu(
        [
            ExtractedCategory(
                name="Drinks",
                existing_category_id="cat-drinks",
                default_vat_group_code="FOOD",
            )
        ]
    )

    result = compare_menus(extracted, EXISTING, VAT)
    category = result.categories[0]

    assert category.action == "update"
    assert [(c.field, c.old_value, c.new_value) for c in category.changes] == [
        ("defaultVatGroupId", "vat-drinks", "vat-food")
    ]


def test_option_groups_use_fuzzy_names():
    extracted = _menu(
        [],
        [ExtractedOptionGroup(name="Toppings"), ExtractedOptionGroup(name="Milk Choice")],
    )

    result = compare_menus(extracted, EXISTING, VAT)
    toppings, milk = result.option_groups

    assert toppings.action == "update"
    assert toppings.existing_id == "og-topping"
    assert toppings.match_score >= THRESHOLD_UPDATE
    assert milk.action == "create"
    assert milk.existing_id is None
    assert milk.match_score < THRESHOLD_UPDATE


def test_summary_counts():
    extracted = _menu(
        [
            ExtractedCategory(
                name="Drinks",
                existing_category_id="cat-drinks",
                default_vat_group_code="DRINKS",
                items=[
                    _item("Cola", 250, "X", vat_group_code="DRINKS"),
                    _item("Water", 150, "W", allergens=["a", "b"], vat_group_code="DRINKS"),
                    _item("Lemonade", 300),
                ],
            ),
            ExtractedCategory(name="Desserts", items=[_item("Tiramisu", 650)]),
        ],
        [ExtractedOptionGroup(name="Toppings"), ExtractedOptionGroup(name="Sauces")],
    )

    summary = compare_menus(extracted, EXISTING, VAT).summary

    assert (summary.total_categories, summary.new_categories, summary.updated_categories) == (
        2,
        1,
        1,
    )
    assert (summary.total_items, summary.new_items, summary.updated_items) == (4, 2, 1)
    assert (
        summary.total_option_groups,
        summary.new_option_groups,
        summary.updated_option_groups,
    ) == (2, 1, 1)
    assert summary.new_items + summary.updated_items <= summary.total_items


def test_comparison_is_deterministic():
    extracted = _menu(
        [
            ExtractedCategory(
                name="Drinks",
                existing_category_id="cat-drinks",
                items=[_item("Cola", 250, "X"), _item("Lemonade", 300)],
            )
        ],
        [ExtractedOptionGroup(name="Toppings")],
    )

    first = compare_menus(extracted, EXISTING, VAT).model_dump_json(by_alias=True)
    second = compare_menus(extracted, EXISTING, VAT).model_dump_json(by_alias=True)

    assert first == second


def test_wire_format_is_camel_case():
    extracted = _menu([ExtractedCategory(name="Desserts", items=[_item("Tiramisu", 650)])])

    data = compare_menus(extracted, EXISTING, VAT).model_dump(mode="json", by_alias=True)

    assert set(data) == {"extractedMenu", "categories", "optionGroups", "summary"}
    assert data["categories"][0]["matchScore"] == 0.0
    assert data["categories"][0]["items"][0]["extracted"]["categoryName"] == ""
    assert "newItems" in data["summary"]
