"""Line-bounded chunking of menu text and merging of per-chunk extractions."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import reduce
from typing import Dict, Iterable, List

from menu_import.models.domain import (
    ExtractedCategory,
    ExtractedMenuData,
    ExtractedOptionGroup,
)


def split_into_chunks(text: str, max_size: int) -> List[str]:
    """
    Split text on line boundaries into chunks of at most ``max_size`` characters.

    Lines are never split, so a single line longer than ``max_size`` becomes
    its own (oversized) chunk.
    """
    chunks: List[str] = []
    current = ""

    for line in text.split("\n"):
        joined_length = len(current) + (1 if current else 0) + len(line)
        if current and joined_length > max_size:
            chunks.append(current)
            current = line
        else:
            current = f"{current}\n{line}" if current else line

    if current:
        chunks.append(current)
    return chunks


@dataclass(frozen=True)
class _MergeState:
    categories: Dict[str, ExtractedCategory] = field(default_factory=dict)
    option_groups: Dict[str, ExtractedOptionGroup] = field(default_factory=dict)
    confidence_total: float = 0.0
    count: int = 0


def _merge_key(name: str) -> str:
    return name.casefold()


def _fold(state: _MergeState, extraction: ExtractedMenuData) -> _MergeState:
    categories = dict(state.categories)
    for cat in extraction.categories:
        key = _merge_key(cat.name)
        first = categories.get(key)
        if first is None:
            categories[key] = cat
            continue
        moved = [item.model_copy(update={"category_name": first.name}) for item in cat.items]
        categories[key] = first.model_copy(update={"items": first.items + moved})

    option_groups = dict(state.option_groups)
    for group in extraction.option_groups:
        key = _merge_key(group.name)
        first = option_groups.get(key)
        if first is None:
            option_groups[key] = group
            continue
        applies_to = list(dict.fromkeys(first.applies_to + group.applies_to))
        option_groups[key] = first.model_copy(update={"applies_to": applies_to})

    return _MergeState(
        categories=categories,
        option_groups=option_groups,
        confidence_total=state.confidence_total + extraction.confidence,
        count=state.count + 1,
    )


def merge_extractions(extractions: Iterable[ExtractedMenuData]) -> ExtractedMenuData:
    """
    Fold chunk extractions, in order, into one.

    Categories and option groups are keyed by case-insensitive name; the first
    occurrence wins and later items / ``appliesTo`` entries are appended to it.
    Confidence is the mean of the chunk confidences.
    """
    state = reduce(_fold, extractions, _MergeState())
    return ExtractedMenuData(
        categories=list(state.categories.values()),
        option_groups=list(state.option_groups.values()),
        confidence=state.confidence_total / state.count if state.count else 0.0,
    )
