from catalog_api.models.promo_code import PromoCode
from catalog_api.promo.verification import VerdictReason
from catalog_api.seed import seed_catalog, seed_promo_codes
from catalog_api.services.promo_store import verify_code


def test_seed_produces_one_code_per_verdict(db):
    seed_promo_codes(db, seed_catalog(db))

    assert db.query(PromoCode).count() == 5
    assert verify_code(db, "welcome10").reason is VerdictReason.VALID
    assert verify_code(db, "LAPTOP5").reason is VerdictReason.VALID
    assert verify_code(db, "IPHONE20").reason is VerdictReason.NOT_STARTED
    assert verify_code(db, "SUMMER25").reason is VerdictReason.INACTIVE
    assert verify_code(db, "NOPE").reason is VerdictReason.NOT_FOUND


def test_seeded_scopes_point_at_one_target(db):
    seed_promo_codes(db, seed_catalog(db))

    electro = db.query(PromoCode).filter_by(code="ELECTRO15").one()
    assert electro.section.slug == "electronics"
    assert electro.category is None and electro.product is None
    assert str(electro.discount_percent) == "15.00"
