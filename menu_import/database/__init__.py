from menu_import.database.db import init_db, get_db, engine, SessionLocal
from menu_import.database.models import (
    Base,
    Category,
    Item,
    MenuImportJob,
    OptionGroup,
    Store,
    VatGroup,
)
from menu_import.database.repositories import ImportJobRepository, MenuRepository

__all__ = [
    "init_db",
    "get_db",
    "engine",
    "SessionLocal",
    "Base",
    "Category",
    "Item",
    "MenuImportJob",
    "OptionGroup",
    "Store",
    "VatGroup",
    "ImportJobRepository",
    "MenuRepository",
]
