"""
Narrow data-access interfaces used by the import pipeline.

Writes commit per call: each entity write is its own unit of work.
"""

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session, selectinload

from menu_import.core.ordering import generate_order_key
from menu_import.database.models import (
    Category,
    Item,
    MenuImportJob,
    OptionGroup,
    Store,
    VatGroup,
)
from menu_import.models.domain import (
    ExistingCategory,
    ExistingItem,
    ExistingMenuData,
    ExistingOptionGroup,
    ImportJobStatus,
    VatGroupRef,
)

logger = logging.getLogger(__name__)


class MenuRepository:
    """Store lookups, menu snapshot, VAT lookup and menu upserts for one session"""

    def __init__(self, db: Session):
        self.db = db

    # Reads

    def get_store(self, store_id: str) -> Optional[Store]:
        return self.db.query(Store).filter(Store.id == store_id).first()

    def get_existing_menu(self, store_id: str) -> ExistingMenuData:
        categories = (
            self.db.query(Category)
            .options(selectinload(Category.items))
            .filter(Category.store_id == store_id)
            .order_by(Category.display_order)
            .all()
        )
        option_groups = (
            self.db.query(OptionGroup)
            .filter(OptionGroup.store_id == store_id)
            .order_by(OptionGroup.display_order)
            .all()
        )
        return ExistingMenuData(
            categories=[
                ExistingCategory(
                    id=cat.id,
                    name=cat.name,
                    description=cat.description,
                    default_vat_group_id=cat.default_vat_group_id,
                    items=[
                        ExistingItem(
                            id=item.id,
                            name=item.name,
                            description=item.description,
                            price=item.price,
                            allergens=item.allergens,
                            vat_group_id=item.vat_group_id,
                        )
                        for item in cat.items
                    ],
                )
                for cat in categories
            ],
            option_groups=[
                ExistingOptionGroup(
                    id=group.id,
                    name=group.name,
                    description=group.description,
                    type=group.type,
                )
                for group in option_groups
            ],
        )

    def list_vat_groups(self, merchant_id: str) -> List[VatGroupRef]:
        groups = (
            self.db.query(VatGroup)
            .filter(VatGroup.merchant_id == merchant_id)
            .order_by(VatGroup.code)
            .all()
        )
        return [VatGroupRef(id=g.id, code=g.code, name=g.name, rate=g.rate) for g in groups]

    def vat_code_to_id(self, merchant_id: str) -> Dict[str, str]:
        return {group.code: group.id for group in self.list_vat_groups(merchant_id)}

    # Writes

    def upsert_category(
        self,
        store_id: str,
        existing_id: Optional[str],
        *,
        name: str,
        description: Optional[str],
        default_vat_group_id: Optional[str],
    ) -> str:
        category = self._owned(Category, existing_id, store_id)
        if category is None:
            last = (
                self.db.query(Category.display_order)
                .filter(Category.store_id == store_id)
                .order_by(Category.display_order.desc())
                .first()
            )
            category = Category(
                store_id=store_id,
                display_order=generate_order_key(last[0] if last else None),
            )
            self.db.add(category)

        category.name = name
        category.description = description
        category.default_vat_group_id = default_vat_group_id
        self.db.commit()
        return category.id

    def upsert_item(
        self,
        store_id: str,
        category_id: str,
        existing_id: Optional[str],
        *,
        name: str,
        description: Optional[str],
        price: int,
        allergens: Optional[List[str]],
        vat_group_id: Optional[str],
    ) -> str:
        item = self._owned(Item, existing_id, store_id)
        if item is None:
            last = (
                self.db.query(Item.display_order)
                .filter(Item.category_id == category_id)
                .order_by(Item.display_order.desc())
                .first()
            )
            item = Item(
                store_id=store_id,
                display_order=generate_order_key(last[0] if last else None),
            )
            self.db.add(item)

        item.category_id = category_id
        item.name = name
        item.description = description
        item.price = price
        item.allergens = allergens
        item.vat_group_id = vat_group_id
        self.db.commit()
        return item.id

    def upsert_option_group(
        self,
        store_id: str,
        existing_id: Optional[str],
        *,
        name: str,
        description: Optional[str],
        type: str,
        is_required: bool,
        choices: List[dict],
        applies_to: Iterable[str],
    ) -> str:
        group = self._owned(OptionGroup, existing_id, store_id)
        if group is None:
            last = (
                self.db.query(OptionGroup.display_order)
                .filter(OptionGroup.store_id == store_id)
                .order_by(OptionGroup.display_order.desc())
                .first()
            )
            group = OptionGroup(
                store_id=store_id,
                display_order=generate_order_key(last[0] if last else None),
            )
            self.db.add(group)

        group.name = name
        group.description = description
        group.type = type
        group.is_required = is_required
        group.choices = choices
        self.db.flush()

        names = set(applies_to)
        if names:
            items = (
                self.db.query(Item)
                .filter(Item.store_id == store_id, Item.name.in_(names))
                .all()
            )
            for item in items:
                if group not in item.option_groups:
                    item.option_groups.append(group)

        self.db.commit()
        return group.id

    def _owned(self, model, entity_id: Optional[str], store_id: str):
        if not entity_id:
            return None
        entity = (
            self.db.query(model)
            .filter(model.id == entity_id, model.store_id == store_id)
            .first()
        )
        if entity is None:
            logger.warning(
                "%s %s not found in store %s, inserting a new one",
                model.__name__,
                entity_id,
                store_id,
            )
        return entity


class ImportJobRepository:
    """Persistence for import job records"""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self, *, store_id: str, original_filename: str, file_type: str, file_key: str
    ) -> MenuImportJob:
        job = MenuImportJob(
            store_id=store_id,
            original_filename=original_filename,
            file_type=file_type,
            file_key=file_key,
            status=ImportJobStatus.PROCESSING.value,
        )
        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)
        return job

    def get(self, job_id: str, store_id: Optional[str] = None) -> Optional[MenuImportJob]:
        query = self.db.query(MenuImportJob).filter(MenuImportJob.id == job_id)
        if store_id is not None:
            query = query.filter(MenuImportJob.store_id == store_id)
        return query.first()

    def mark_ready(self, job_id: str, comparison_data: dict) -> None:
        self._update(job_id, status=ImportJobStatus.READY, comparison_data=comparison_data)

    def mark_failed(self, job_id: str, error_message: str) -> None:
        self._update(job_id, status=ImportJobStatus.FAILED, error_message=error_message)

    def mark_completed(self, job_id: str) -> None:
        self._update(job_id, status=ImportJobStatus.COMPLETED)

    def _update(self, job_id: str, *, status: ImportJobStatus, **fields) -> None:
        job = self.get(job_id)
        if job is None:
            logger.warning("Cannot set job %s to %s: job not found", job_id, status.value)
            return
        job.status = status.value
        for key, value in fields.items():
            setattr(job, key, value)
        self.db.commit()
