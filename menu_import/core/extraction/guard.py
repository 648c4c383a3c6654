"""
Input Guard
Regex filters applied around the model call: injection sanitizing on the way
in, offensive-content redaction on the way out. Both are best-effort and
never raise.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from menu_import.models.domain import ExtractedMenuData

logger = logging.getLogger(__name__)

FILTERED_PLACEHOLDER = "[FILTERED]"

INJECTION_PATTERNS = [
    re.compile(r"ignore\s+(all\s+)?(previous|above|prior|earlier)\s+instructions?", re.I),
    re.compile(r"disregard\s+(all\s+)?(previous|above|prior|earlier)\s+instructions?", re.I),
    re.compile(r"forget\s+(everything|all|your|the\s+previous)", re.I),
    re.compile(r"system\s*:", re.I),
    re.compile(r"assistant\s*:", re.I),
    re.compile(r"\[INST\]", re.I),
    re.compile(r"<<SYS>>", re.I),
    re.compile(r"<\|im_start\|>", re.I),
    re.compile(r"<\|im_end\|>", re.I),
    re.compile(r"you\s+are\s+now\s+(a|an)\b", re.I),
    re.compile(r"new\s+(role|instructions?|task)\s*:", re.I),
    re.compile(r"from\s+now\s+on", re.I),
    re.compile(r"pretend\s+(you|to\s+be)", re.I),
    re.compile(r"act\s+as\s+(if|a|an)\b", re.I),
    re.compile(r"roleplay\s+as", re.I),
    re.compile(r"override\s+(previous|all|your)", re.I),
    re.compile(r"do\s+not\s+follow\s+(the|your|previous)", re.I),
]

# Leetspeak substitutions and stretched letters are tolerated
BLOCKED_CONTENT_PATTERNS = [
    re.compile(r"\bn[i1]gg[ae3]r?s?\b", re.I),
    re.compile(r"\bf[a@]gg?[o0]t?s?\b", re.I),
    re.compile(r"\bk[i1]k[e3]s?\b", re.I),
    re.compile(r"\bch[i1]nks?\b", re.I),
    re.compile(r"\bsp[i1]cs?\b", re.I),
    re.compile(r"\bw[e3]tb[a@]cks?\b", re.I),
    re.compile(r"\bf+u+c+k+", re.I),
    re.compile(r"\bs+h+[i1]+t+(?:s|ty)?\b", re.I),
    re.compile(r"\bc+u+n+t+", re.I),
    re.compile(r"\ba+s+s+h+o+l+e+", re.I),
]

FILTERED_CATEGORY = "[Filtered Category]"
FILTERED_ITEM = "[Filtered Item]"
FILTERED_OPTION = "[Filtered Option]"
FILTERED_CHOICE = "[Filtered Choice]"
FILTERED_TEXT = "[Filtered]"


@dataclass(frozen=True)
class SanitizedText:
    text: str
    suspicious: bool


def sanitize_menu_text(text: str) -> SanitizedText:
    """Replace instruction-override phrases with a placeholder.

    Matches are logged, not blocked; extraction continues on the sanitized text.
    """
    try:
        sanitized = text
        suspicious = False
        for pattern in INJECTION_PATTERNS:
            sanitized, count = pattern.subn(FILTERED_PLACEHOLDER, sanitized)
            if count:
                suspicious = True

        if suspicious:
            logger.warning(
                "Suspicious content detected in menu file - potential prompt injection attempt: %r",
                text[:200],
            )
        return SanitizedText(text=sanitized, suspicious=suspicious)
    except Exception:
        logger.warning("Injection sanitizer failed, passing text through", exc_info=True)
        return SanitizedText(text=text, suspicious=False)


def contains_blocked_content(text: Optional[str]) -> bool:
    if not text:
        return False
    return any(pattern.search(text) for pattern in BLOCKED_CONTENT_PATTERNS)


def _redact(value: Optional[str], marker: str) -> Optional[str]:
    return marker if contains_blocked_content(value) else value


def filter_extraction(extraction: ExtractedMenuData) -> ExtractedMenuData:
    """Redact offensive user-visible strings, keeping the structure intact."""
    try:
        categories = [
            cat.model_copy(
                update={
                    "name": _redact(cat.name, FILTERED_CATEGORY),
                    "description": _redact(cat.description, FILTERED_TEXT),
                    "items": [
                        item.model_copy(
                            update={
                                "name": _redact(item.name, FILTERED_ITEM),
                                "description": _redact(item.description, FILTERED_TEXT),
                                "category_name": _redact(item.category_name, FILTERED_CATEGORY),
                            }
                        )
                        for item in cat.items
                    ],
                }
            )
            for cat in extraction.categories
        ]
        option_groups = [
            group.model_copy(
                update={
                    "name": _redact(group.name, FILTERED_OPTION),
                    "description": _redact(group.description, FILTERED_TEXT),
                    "choices": [
                        choice.model_copy(update={"name": _redact(choice.name, FILTERED_CHOICE)})
                        for choice in group.choices
                    ],
                }
            )
            for group in extraction.option_groups
        ]
        return extraction.model_copy(
            update={"categories": categories, "option_groups": option_groups}
        )
    except Exception:
        logger.warning("Output content filter failed, passing extraction through", exc_info=True)
        return extraction
