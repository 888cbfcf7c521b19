import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from catalog_api.core.db import Base, engine, SessionLocal
from catalog_api.core.logging_setup import configure_logging
from catalog_api.models.category import Category
from catalog_api.models.product import Product, ProductStatus
from catalog_api.models.section import Section
from catalog_api.services.promo_store import create_promo_code

logger = logging.getLogger(__name__)


def reset_db(db: Session):
    # Drops & recreates all tables (dev only)
    db.close()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def seed_catalog(db: Session) -> dict[str, object]:
    electronics = Section(title="Electronics", slug="electronics", description="Phones, laptops and TVs.")
    home = Section(title="Home Appliances", slug="home-appliances", description="Kitchen and laundry.")
    db.add_all([electronics, home])
    db.flush()

    phones = Category(title="Phones", slug="phones", section_id=electronics.id)
    laptops = Category(title="Laptops", slug="laptops", section_id=electronics.id)
    fridges = Category(title="Fridges", slug="fridges", section_id=home.id)
    db.add_all([phones, laptops, fridges])
    db.flush()

    products = [
        Product(
            title="Apple iPhone 15 (128GB) - Black",
            slug="apple-iphone-15-128gb-black",
            description="6.1-inch Super Retina XDR, A16 Bionic, USB-C, 128GB storage.",
            price=Decimal("2899.99"),
            category_id=phones.id,
        ),
        Product(
            title="Samsung Galaxy S24 Ultra (256GB)",
            slug="samsung-galaxy-s24-ultra-256gb",
            description="6.8-inch Dynamic AMOLED 2X, Snapdragon 8 Gen 3, S Pen.",
            price=Decimal("4799.99"),
            discount_price=Decimal("4499.99"),
            category_id=phones.id,
        ),
        Product(
            title="ASUS TUF Gaming A15",
            slug="asus-tuf-gaming-a15",
            description="15.6-inch FHD 144Hz, Ryzen 7, RTX 4050, 16GB RAM, 512GB SSD.",
            price=Decimal("2999.99"),
            category_id=laptops.id,
        ),
        Product(
            title="LG 260L Inverter Refrigerator",
            slug="lg-260l-inverter-refrigerator",
            description="260L double door, inverter compressor.",
            price=Decimal("1999.99"),
            status=ProductStatus.OUT_OF_STOCK,
            category_id=fridges.id,
        ),
    ]
    db.add_all(products)
    db.commit()
    return {"electronics": electronics, "laptops": laptops, "iphone": products[0]}


def seed_promo_codes(db: Session, catalog: dict[str, object]):
    now = datetime.now(timezone.utc)
    fmt = "%Y-%m-%dT%H:%M"
    payloads = [
        {"code": "WELCOME10", "scopeType": "all", "discountPercent": 10,
         "description": "New customer discount."},
        {"code": "ELECTRO15", "scopeType": "section", "sectionId": catalog["electronics"].id,
         "discountPercent": "15"},
        {"code": "LAPTOP5", "scopeType": "category", "categoryId": catalog["laptops"].id,
         "discountPercent": 5.5, "expiresAt": (now + timedelta(days=30)).strftime(fmt)},
        {"code": "IPHONE20", "scopeType": "product", "productId": catalog["iphone"].id,
         "discountPercent": 20, "startsAt": (now + timedelta(days=7)).strftime(fmt)},
        {"code": "SUMMER25", "scopeType": "all", "discountPercent": 25, "isActive": False,
         "startsAt": (now - timedelta(days=120)).strftime(fmt),
         "expiresAt": (now - timedelta(days=30)).strftime(fmt)},
    ]
    for payload in payloads:
        create_promo_code(db, payload)


def main():
    configure_logging("catalog_seed")
    db = SessionLocal()
    try:
        reset_db(db)
        catalog = seed_catalog(db)
        seed_promo_codes(db, catalog)
        logger.info("Seed complete. Try POST /api/promocodes/verify with WELCOME10, IPHONE20 or SUMMER25")
    finally:
        db.close()


if __name__ == "__main__":
    main()
