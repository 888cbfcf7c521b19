import pytest

from catalog_api.models.promo_code import PromoCode
from catalog_api.promo.scope import (
    CategoryScope,
    ProductScope,
    ScopeError,
    ScopeIds,
    ScopeResolver,
    ScopeType,
    SectionScope,
    StorewideScope,
    apply_scope,
)


@pytest.fixture
def stocked(lookups):
    lookups.add_section(5, "Electronics")
    lookups.add_category(5, "Phones")
    lookups.add_product(5, "iPhone 15")
    return lookups


def _relations(record: PromoCode):
    return [record.section, record.category, record.product]


def test_all_ignores_ids_and_never_fails(stocked):
    scope = ScopeResolver(stocked).resolve(ScopeType.ALL, ScopeIds(999, -1, None))
    assert isinstance(scope, StorewideScope)
    assert scope.target is None


@pytest.mark.parametrize(
    "scope_type, ids, variant",
    [
        (ScopeType.SECTION, ScopeIds(section_id=5), SectionScope),
        (ScopeType.CATEGORY, ScopeIds(category_id=5), CategoryScope),
        (ScopeType.PRODUCT, ScopeIds(product_id=5), ProductScope),
    ],
)
def test_targeted_scope_resolves_entity(stocked, scope_type, ids, variant):
    scope = ScopeResolver(stocked).resolve(scope_type, ids)
    assert isinstance(scope, variant)
    assert scope.scope_type is scope_type
    assert scope.target.id == 5


@pytest.mark.parametrize(
    "scope_type, ids, field",
    [
        (ScopeType.SECTION, ScopeIds(category_id=5, product_id=5), "sectionId"),
        (ScopeType.CATEGORY, ScopeIds(category_id=0), "categoryId"),
        (ScopeType.PRODUCT, ScopeIds(product_id=-3), "productId"),
    ],
)
def test_missing_or_non_positive_id_is_required(stocked, scope_type, ids, field):
    with pytest.raises(ScopeError) as excinfo:
        ScopeResolver(stocked).resolve(scope_type, ids)
    assert excinfo.value.field == field
    assert excinfo.value.reason == f"{field} is required for scopeType={scope_type.value}"
    assert excinfo.value.status_code == 422
    assert excinfo.value.payload() == {"message": "Validation failed.", "errors": {field: [excinfo.value.reason]}}


@pytest.mark.parametrize(
    "scope_type, ids, message",
    [
        (ScopeType.SECTION, ScopeIds(section_id=42), "Section not found"),
        (ScopeType.CATEGORY, ScopeIds(category_id=42), "Category not found"),
        (ScopeType.PRODUCT, ScopeIds(product_id=42), "Product not found"),
    ],
)
def test_unknown_target_is_not_found(stocked, scope_type, ids, message):
    with pytest.raises(ScopeError, match=message):
        ScopeResolver(stocked).resolve(scope_type, ids)


def test_id_past_the_key_range_is_not_found_without_lookup(stocked):
    stocked.find_section_by_id = None  # must not be called
    with pytest.raises(ScopeError) as excinfo:
        ScopeResolver(stocked).resolve(ScopeType.SECTION, ScopeIds(section_id=10**20))
    assert excinfo.value.errors == {"sectionId": ["Section not found"]}


@pytest.mark.parametrize("scope_type", list(ScopeType))
def test_apply_leaves_at_most_one_relation(stocked, scope_type):
    record = PromoCode(code="X1")
    record.section = stocked.sections[5]
    record.category = stocked.categories[5]
    record.product = stocked.products[5]

    scope = ScopeResolver(stocked).resolve(scope_type, ScopeIds(5, 5, 5))
    apply_scope(record, scope)

    assert record.scope_type is scope_type
    populated = [relation for relation in _relations(record) if relation is not None]
    assert len(populated) == (0 if scope_type is ScopeType.ALL else 1)


def test_switching_scope_clears_previous_relation_even_with_same_id(stocked):
    record = PromoCode(code="SWITCH")
    resolver = ScopeResolver(stocked)
    apply_scope(record, resolver.resolve(ScopeType.SECTION, ScopeIds(section_id=5)))
    assert record.section.id == 5

    # category 5 shares the numeric id of the old section
    apply_scope(record, resolver.resolve(ScopeType.CATEGORY, ScopeIds(section_id=5, category_id=5)))

    assert record.scope_type is ScopeType.CATEGORY
    assert record.section is None
    assert record.category.id == 5
    assert record.product is None
    assert isinstance(record.scope, CategoryScope)


def test_apply_is_idempotent_for_unchanged_scope(stocked):
    record = PromoCode(code="SAME")
    scope = ScopeResolver(stocked).resolve(ScopeType.PRODUCT, ScopeIds(product_id=5))
    apply_scope(record, scope)
    apply_scope(record, scope)
    assert _relations(record) == [None, None, stocked.products[5]]


def test_scope_type_parse():
    assert ScopeType.parse(" Section ") is ScopeType.SECTION
    assert ScopeType.parse(ScopeType.ALL) is ScopeType.ALL
    assert ScopeType.parse("storewide") is None
    assert ScopeType.parse(3) is None
