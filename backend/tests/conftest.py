from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import catalog_api.models  # noqa
from catalog_api.core import config
from catalog_api.core.db import Base, get_db
from catalog_api.main import app
from catalog_api.models.category import Category
from catalog_api.models.product import Product
from catalog_api.models.promo_code import PromoCode, fold_code
from catalog_api.models.section import Section


class InMemoryLookups:
    """Dict-backed stand-in for the SQL lookups."""

    def __init__(self):
        self.sections: dict[int, Section] = {}
        self.categories: dict[int, Category] = {}
        self.products: dict[int, Product] = {}
        self.promos: list[PromoCode] = []

    def add_section(self, section_id: int, title: str = "Section") -> Section:
        self.sections[section_id] = Section(id=section_id, title=title, slug=f"section-{section_id}")
        return self.sections[section_id]

    def add_category(self, category_id: int, title: str = "Category") -> Category:
        self.categories[category_id] = Category(
            id=category_id, title=title, slug=f"category-{category_id}", section_id=1
        )
        return self.categories[category_id]

    def add_product(self, product_id: int, title: str = "Product") -> Product:
        self.products[product_id] = Product(
            id=product_id, title=title, slug=f"product-{product_id}", price=Decimal("10.00"), category_id=1
        )
        return self.products[product_id]

    def add_promo(self, **fields) -> PromoCode:
        fields.setdefault("id", len(self.promos) + 1)
        fields.setdefault("is_active", True)
        promo = PromoCode(**fields)
        self.promos.append(promo)
        return promo

    def find_section_by_id(self, section_id):
        return self.sections.get(section_id)

    def find_category_by_id(self, category_id):
        return self.categories.get(category_id)

    def find_product_by_id(self, product_id):
        return self.products.get(product_id)

    def find_by_code(self, code, exclude_id=None):
        wanted = fold_code(code)
        for promo in self.promos:
            if promo.code_normalized == wanted and promo.id != exclude_id:
                return promo
        return None


@pytest.fixture
def lookups():
    return InMemoryLookups()


@pytest.fixture
def engine():
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
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory, monkeypatch):
    monkeypatch.setattr(config.settings, "ADMIN_API_TOKEN", None, raising=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def catalog(client):
    """One section -> category -> product chain created through the API."""
    section = client.post("/api/sections", json={"title": "Electronics"}).json()
    category = client.post("/api/categories", json={"title": "Phones", "sectionId": section["id"]}).json()
    product = client.post(
        "/api/products",
        json={"title": "iPhone 15", "price": "999.99", "categoryId": category["id"]},
    ).json()
    return {"section": section, "category": category, "product": product}
