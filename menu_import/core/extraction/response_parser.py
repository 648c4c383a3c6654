"""
Response Parsing
Decodes free-text model output (chat mode) into an ExtractedMenuData.

Model output is decoded into one of a fixed set of response variants, tried in
order, and only then converted:

    CanonicalResponse        {"categories": [...], "optionGroups": [...]?, ...}
    KeyedCategoriesResponse  {"starters": [...], "hot_drinks": [...], ...}
    ParseFailure             invalid JSON, or nothing menu-shaped in it
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from menu_import.core.extraction.normalize import format_category_name, normalize_text_case
from menu_import.models.domain import (
    ExtractedCategory,
    ExtractedItem,
    ExtractedMenuData,
    ExtractedOptionGroup,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.7
OPTION_GROUP_KEYS = ("optionGroups", "option_groups", "options")
RESERVED_KEYS = frozenset(("confidence",) + OPTION_GROUP_KEYS)


@dataclass(frozen=True)
class CanonicalResponse:
    categories: List[Any]
    option_groups: List[Any]
    confidence: float


@dataclass(frozen=True)
class KeyedCategoriesResponse:
    groups: List[Tuple[str, List[Any]]]
    option_groups: List[Any] = field(default_factory=list)
    confidence: float = DEFAULT_CONFIDENCE


@dataclass(frozen=True)
class ParseFailure:
    reason: str


ModelResponse = Union[CanonicalResponse, KeyedCategoriesResponse, ParseFailure]


def _finite_float(text: str) -> Optional[float]:
    # NaN, Infinity and overflowing literals decode to null
    value = float(text)
    return value if math.isfinite(value) else None


def strip_code_fence(content: str) -> str:
    cleaned = content.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def _confidence(obj: Dict[str, Any]) -> float:
    value = obj.get("confidence")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    if isinstance(value, float) and not math.isfinite(value):
        return DEFAULT_CONFIDENCE
    return float(min(max(value, 0), 1))


def _option_groups(obj: Dict[str, Any]) -> List[Any]:
    for key in OPTION_GROUP_KEYS:
        value = obj.get(key)
        if isinstance(value, list):
            return value
    return []


def _decode_canonical(obj: Dict[str, Any]) -> Optional[ModelResponse]:
    if isinstance(obj.get("categories"), list):
        return CanonicalResponse(
            categories=obj["categories"],
            option_groups=_option_groups(obj),
            confidence=_confidence(obj),
        )
    return None


def _decode_keyed(obj: Dict[str, Any]) -> Optional[ModelResponse]:
    groups = [
        (key, value)
        for key, value in obj.items()
        if key not in RESERVED_KEYS and isinstance(value, list)
    ]
    option_groups = _option_groups(obj)
    if not groups and not option_groups:
        return None
    return KeyedCategoriesResponse(
        groups=groups,
        option_groups=option_groups,
        confidence=_confidence(obj),
    )


_DECODERS: Tuple[Callable[[Dict[str, Any]], Optional[ModelResponse]], ...] = (
    _decode_canonical,
    _decode_keyed,
)


def decode_response(content: str) -> ModelResponse:
    """Decode raw model text into a response variant. Never raises."""
    cleaned = strip_code_fence(content or "")
    try:
        parsed = json.loads(cleaned, parse_float=_finite_float, parse_constant=lambda _: None)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse AI response as JSON (%s): %r", e, cleaned[:200])
        return ParseFailure(reason=f"invalid JSON: {e.msg}")

    if not isinstance(parsed, dict):
        logger.warning("AI response is not a JSON object: %r", cleaned[:200])
        return ParseFailure(reason="top-level JSON value is not an object")

    for decoder in _DECODERS:
        decoded = decoder(parsed)
        if decoded is not None:
            return decoded
    return ParseFailure(reason="no known response shape")


def to_extraction(response: ModelResponse) -> ExtractedMenuData:
    """Convert a decoded response variant into a normalized extraction."""
    if isinstance(response, ParseFailure):
        return ExtractedMenuData.empty()

    if isinstance(response, CanonicalResponse):
        categories = [
            _normalize_category(raw) for raw in response.categories if isinstance(raw, dict)
        ]
    else:
        categories = []
        for key, values in response.groups:
            name = format_category_name(key)
            categories.append(
                ExtractedCategory(name=name, items=_normalize_items(values, name))
            )

    return ExtractedMenuData(
        categories=categories,
        option_groups=_normalize_option_groups(response.option_groups),
        confidence=response.confidence,
    )


def parse_ai_response(content: str) -> ExtractedMenuData:
    return to_extraction(decode_response(content))


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value else None


def _reference(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _price(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return max(int(round(value)), 0)


def _normalize_category(raw: Dict[str, Any]) -> ExtractedCategory:
    name = normalize_text_case(str(raw.get("name") or "Unknown Category"))
    items = raw.get("items")
    return ExtractedCategory(
        name=name,
        description=_optional_str(raw.get("description")),
        existing_category_id=_reference(raw.get("existingCategoryId")),
        default_vat_group_code=_reference(raw.get("defaultVatGroupCode")),
        items=_normalize_items(items if isinstance(items, list) else [], name),
    )


def _normalize_items(values: List[Any], category_name: str) -> List[ExtractedItem]:
    items = []
    for raw in values:
        if isinstance(raw, str):
            raw = {"name": raw}
        if not isinstance(raw, dict):
            continue
        allergens = raw.get("allergens")
        items.append(
            ExtractedItem(
                name=normalize_text_case(str(raw.get("name") or "Unknown Item")),
                description=_optional_str(raw.get("description")),
                price=_price(raw.get("price")),
                allergens=[str(a) for a in allergens] if isinstance(allergens, list) else None,
                category_name=category_name,
                existing_item_id=_reference(raw.get("existingItemId")),
                vat_group_code=_reference(raw.get("vatGroupCode")),
            )
        )
    return items


def _normalize_option_groups(values: List[Any]) -> List[ExtractedOptionGroup]:
    groups = []
    for raw in values:
        try:
            group = ExtractedOptionGroup.model_validate(raw)
        except ValidationError as e:
            logger.warning("Dropping malformed option group: %s", e.errors()[:1])
            continue
        groups.append(group.model_copy(update={"name": normalize_text_case(group.name)}))
    return groups
