"""Name normalization for extracted menus."""

import re

from menu_import.models.domain import ExtractedMenuData

# First letter after start of string or whitespace, any alphabet
_WORD_START = re.compile(r"(^|\s)([^\W\d_])")


def normalize_text_case(text: str) -> str:
    """Title-case each whitespace-delimited word (``"WIENER schnitzel"`` -> ``"Wiener Schnitzel"``)."""
    trimmed = text.strip()
    if not trimmed:
        return trimmed
    return _WORD_START.sub(lambda m: m.group(1) + m.group(2).upper(), trimmed.lower())


def format_category_name(key: str) -> str:
    """Turn a JSON key such as ``"hot_drinks"`` or ``"hot-drinks"`` into ``"Hot Drinks"``."""
    return normalize_text_case(key.replace("_", " ").replace("-", " "))


def normalize_extraction(extraction: ExtractedMenuData) -> ExtractedMenuData:
    categories = []
    for cat in extraction.categories:
        name = normalize_text_case(cat.name)
        items = [
            item.model_copy(
                update={"name": normalize_text_case(item.name), "category_name": name}
            )
            for item in cat.items
        ]
        categories.append(cat.model_copy(update={"name": name, "items": items}))

    option_groups = [
        group.model_copy(update={"name": normalize_text_case(group.name)})
        for group in extraction.option_groups
    ]
    return extraction.model_copy(
        update={"categories": categories, "option_groups": option_groups}
    )
