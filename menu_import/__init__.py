"""menu-import: AI-assisted restaurant menu import with reviewable change-sets."""

__version__ = "1.0.0"
