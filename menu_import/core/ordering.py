"""
Display-order keys: short strings that sort lexicographically.

Digits are lower case only, so keys order the same under case-insensitive
collations.
"""

from typing import Optional

DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
FIRST_KEY = "a0"


def generate_order_key(last: Optional[str]) -> str:
    """Return a key that sorts after ``last`` (append-at-end)."""
    if not last:
        return FIRST_KEY
    if any(ch not in DIGITS for ch in last):
        return last + DIGITS[1]

    # Bump the right-most digit that can still grow and drop the tail
    for i in range(len(last) - 1, -1, -1):
        position = DIGITS.index(last[i])
        if position < len(DIGITS) - 1:
            return last[:i] + DIGITS[position + 1]

    # All digits maxed out: any extension sorts after its prefix
    return last + DIGITS[1]
