# menu_import/database/models.py
# Database tables for stores, their menus and menu import jobs

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


# Links option groups to the items they apply to
item_option_groups = Table(
    "item_option_groups",
    Base.metadata,
    Column("item_id", String(36), ForeignKey("items.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "option_group_id",
        String(36),
        ForeignKey("option_groups.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Store(Base):
    # A merchant's store; the owner of a menu

    __tablename__ = "stores"

    id = Column(String(36), primary_key=True, default=_uuid)
    merchant_id = Column(String(36), nullable=False, index=True)
    name = Column(String(255), nullable=False)

    categories = relationship("Category", back_populates="store", cascade="all, delete-orphan")
    import_jobs = relationship(
        "MenuImportJob", back_populates="store", cascade="all, delete-orphan"
    )


class VatGroup(Base):
    # Merchant-wide VAT groups, referenced by code in extractions

    __tablename__ = "vat_groups"

    id = Column(String(36), primary_key=True, default=_uuid)
    merchant_id = Column(String(36), nullable=False, index=True)
    code = Column(String(50), nullable=False)
    name = Column(String(255), nullable=False)
    rate = Column(Integer, nullable=False)  # Basis points

    __table_args__ = (Index("idx_vat_merchant_code", "merchant_id", "code", unique=True),)


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=_uuid)
    store_id = Column(String(36), ForeignKey("stores.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    default_vat_group_id = Column(String(36), ForeignKey("vat_groups.id"), nullable=True)
    display_order = Column(String(64), nullable=False)

    store = relationship("Store", back_populates="categories")
    items = relationship("Item", back_populates="category", order_by="Item.display_order")


class Item(Base):
    __tablename__ = "items"

    id = Column(String(36), primary_key=True, default=_uuid)
    store_id = Column(String(36), ForeignKey("stores.id"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Integer, nullable=False, default=0)  # Cents
    allergens = Column(JSON, nullable=True)
    vat_group_id = Column(String(36), ForeignKey("vat_groups.id"), nullable=True)
    display_order = Column(String(64), nullable=False)

    category = relationship("Category", back_populates="items")
    option_groups = relationship("OptionGroup", secondary=item_option_groups)


class OptionGroup(Base):
    __tablename__ = "option_groups"

    id = Column(String(36), primary_key=True, default=_uuid)
    store_id = Column(String(36), ForeignKey("stores.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(32), nullable=False, default="single_select")
    is_required = Column(Boolean, nullable=False, default=False)
    choices = Column(JSON, nullable=True)  # [{name, priceModifier}]
    display_order = Column(String(64), nullable=False)


class MenuImportJob(Base):
    # One import attempt: uploaded file, lifecycle status and review artifact

    __tablename__ = "menu_import_jobs"

    id = Column(String(36), primary_key=True, default=_uuid)
    store_id = Column(String(36), ForeignKey("stores.id"), nullable=False, index=True)
    original_filename = Column(String(255), nullable=False)
    file_type = Column(String(16), nullable=False)
    file_key = Column(String(512), nullable=False)
    status = Column(String(20), default="PROCESSING", nullable=False)
    error_message = Column(Text, nullable=True)
    comparison_data = Column(JSON, nullable=True)  # MenuComparisonData, camelCase
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    store = relationship("Store", back_populates="import_jobs")

    __table_args__ = (Index("idx_import_job_store_status", "store_id", "status"),)
