"""Shared fixtures: in-memory database, seeded store, blob storage."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from menu_import.database.models import (
    Base,
    Category,
    Item,
    MenuImportJob,
    OptionGroup,
    Store,
    VatGroup,
)
from menu_import.services.storage import StorageService

MERCHANT_ID = "merchant-1"
OTHER_MERCHANT_ID = "merchant-2"
STORE_ID = "store-1"
OTHER_STORE_ID = "store-2"


@pytest.fixture
def engine():
    """SQLite in memory, shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded(db):
    """A store with one category, two items, one option group and two VAT groups."""
    db.add_all(
        [
            Store(id=STORE_ID, merchant_id=MERCHANT_ID, name="Cafe Test"),
            Store(id=OTHER_STORE_ID, merchant_id=OTHER_MERCHANT_ID, name="Other Cafe"),
            VatGroup(id="vat-food", merchant_id=MERCHANT_ID, code="FOOD", name="Food", rate=700),
            VatGroup(
                id="vat-drinks", merchant_id=MERCHANT_ID, code="DRINKS", name="Drinks", rate=1900
            ),
            Category(
                id="cat-drinks",
                store_id=STORE_ID,
                name="Drinks",
                default_vat_group_id="vat-drinks",
                display_order="a0",
            ),
            Item(
                id="item-cola",
                store_id=STORE_ID,
                category_id="cat-drinks",
                name="Cola",
                price=200,
                vat_group_id="vat-drinks",
                display_order="a0",
            ),
            Item(
                id="item-water",
                store_id=STORE_ID,
                category_id="cat-drinks",
                name="Water",
                price=150,
                vat_group_id="vat-drinks",
                display_order="a1",
            ),
            OptionGroup(
                id="og-topping",
                store_id=STORE_ID,
                name="Topping",
                type="multi_select",
                choices=[],
                display_order="a0",
            ),
        ]
    )
    db.commit()
    return db


@pytest.fixture
def storage(tmp_path):
    return StorageService(root_dir=tmp_path / "uploads")


@pytest.fixture
def make_job(db, storage):
    """Create a stored file plus its import job."""

    def _make(content=b"Cola 2.50", file_type="txt", status="PROCESSING", comparison=None):
        key = storage.new_file_key(STORE_ID, file_type)
        storage.save_file(key, content)
        job = MenuImportJob(
            store_id=STORE_ID,
            original_filename=f"menu.{file_type}",
            file_type=file_type,
            file_key=key,
            status=status,
            comparison_data=comparison,
        )
        db.add(job)
        db.commit()
        return job.id

    return _make
