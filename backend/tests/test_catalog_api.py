import pytest


def test_health(client):
    assert client.get("/").json() == {"status": "ok"}


def test_section_crud(client):
    res = client.post("/api/sections", json={"title": "  Home & Garden  ", "description": "Outdoor"})
    assert res.status_code == 201
    section = res.json()
    assert section["title"] == "Home & Garden"
    assert section["slug"] == "home-garden"
    assert section["isActive"] is True

    res = client.patch(f"/api/sections/{section['id']}", json={"isActive": False})
    assert res.status_code == 200
    assert res.json()["isActive"] is False
    assert res.json()["updatedAt"] is not None

    assert client.delete(f"/api/sections/{section['id']}").status_code == 204
    assert client.get(f"/api/sections/{section['id']}").status_code == 404


def test_duplicate_titles_get_distinct_slugs(client):
    first = client.post("/api/sections", json={"title": "Sale"}).json()
    second = client.post("/api/sections", json={"title": "Sale"}).json()
    assert first["slug"] == "sale"
    assert second["slug"] == "sale-2"


def test_section_validation_errors(client):
    res = client.post("/api/sections", json={"title": "x"})
    assert res.status_code == 422
    body = res.json()
    assert body["message"] == "Validation failed."
    assert "title" in body["errors"]


def test_invalid_json_body(client):
    res = client.post("/api/sections", content="{not json", headers={"Content-Type": "application/json"})
    assert res.status_code == 400
    assert res.json() == {"message": "Invalid JSON body."}


def test_patch_cannot_null_required_column(client):
    section = client.post("/api/sections", json={"title": "Books"}).json()
    res = client.patch(f"/api/sections/{section['id']}", json={"title": None})
    assert res.status_code == 422
    assert res.json()["errors"] == {"title": ["title is required."]}


def test_category_requires_existing_section(client):
    res = client.post("/api/categories", json={"title": "Phones", "sectionId": 99})
    assert res.status_code == 422
    assert res.json()["errors"] == {"sectionId": ["Section not found."]}


def test_category_list_filters_by_section(client, catalog):
    other = client.post("/api/sections", json={"title": "Garden"}).json()
    client.post("/api/categories", json={"title": "Tools", "sectionId": other["id"]})
    body = client.get("/api/categories", params={"sectionId": catalog["section"]["id"]}).json()
    assert [item["title"] for item in body["items"]] == ["Phones"]
    assert body["total"] == 1


def test_product_crud_and_filters(client, catalog):
    product = catalog["product"]
    assert product["price"] == "999.99"
    assert product["status"] == "active"
    assert product["categoryId"] == catalog["category"]["id"]

    res = client.patch(f"/api/products/{product['id']}", json={"status": "draft", "discountPrice": "899.00"})
    assert res.status_code == 200
    assert res.json()["status"] == "draft"

    drafts = client.get("/api/products", params={"status": "draft"}).json()
    assert [item["id"] for item in drafts["items"]] == [product["id"]]
    assert client.get("/api/products", params={"search": "IPHONE"}).json()["total"] == 1
    assert client.get("/api/products", params={"status": "active"}).json()["total"] == 0


def test_product_rejects_bad_price(client, catalog):
    res = client.post("/api/products", json={"title": "Free", "price": 0, "categoryId": catalog["category"]["id"]})
    assert res.status_code == 422
    assert "price" in res.json()["errors"]


def test_delete_blocked_while_referenced(client, catalog):
    client.post("/api/promocodes", json={
        "code": "PHONE5", "scopeType": "product", "productId": catalog["product"]["id"], "discountPercent": 5,
    })

    res = client.delete(f"/api/sections/{catalog['section']['id']}")
    assert res.status_code == 409
    assert res.json() == {"message": "Section is still referenced by categories."}

    res = client.delete(f"/api/products/{catalog['product']['id']}")
    assert res.status_code == 409
    assert res.json() == {"message": "Product is still referenced by promo codes."}


@pytest.fixture
def kitchen(client, catalog):
    """A second, inactive product under another section."""
    section = client.post("/api/sections", json={"title": "Home & Garden"}).json()
    category = client.post("/api/categories", json={"title": "Kitchen Tools", "sectionId": section["id"]}).json()
    product = client.post("/api/products", json={
        "title": "Blender", "description": "Smoothie maker", "price": "49.50",
        "categoryId": category["id"], "isActive": False,
    }).json()
    return {"section": section, "category": category, "product": product}


def _titles(client, path, **params):
    return [item["title"] for item in client.get(path, params=params).json()["items"]]


def test_product_filters_by_section_and_activity(client, catalog, kitchen):
    assert _titles(client, "/api/products", sectionId=catalog["section"]["id"]) == ["iPhone 15"]
    assert _titles(client, "/api/products", sectionId=kitchen["section"]["id"]) == ["Blender"]
    assert _titles(client, "/api/products", isActive="false") == ["Blender"]
    assert _titles(client, "/api/products", isActive="true") == ["iPhone 15"]


def test_product_query_searches_title_and_description(client, catalog, kitchen):
    assert _titles(client, "/api/products", q="SMOOTHIE") == ["Blender"]
    assert _titles(client, "/api/products", q="iphone") == ["iPhone 15"]


def test_product_sorting(client, catalog, kitchen):
    assert _titles(client, "/api/products", sortBy="price", sortDir="asc") == ["Blender", "iPhone 15"]
    assert _titles(client, "/api/products", sortBy="price", sortDir="desc") == ["iPhone 15", "Blender"]
    assert _titles(client, "/api/products", sortBy="title", sortDir="asc") == ["Blender", "iPhone 15"]
    # unknown keys fall back to newest first
    assert _titles(client, "/api/products", sortBy="stock") == ["Blender", "iPhone 15"]


def test_section_and_category_search_cover_slug(client, catalog, kitchen):
    assert _titles(client, "/api/sections", q="home-garden") == ["Home & Garden"]
    assert _titles(client, "/api/sections", search="electr") == ["Electronics"]
    assert _titles(client, "/api/categories", q="kitchen-tools") == ["Kitchen Tools"]
    assert _titles(client, "/api/categories", q="PHONES") == ["Phones"]


def test_out_of_range_ids_are_rejected(client, catalog):
    assert client.get("/api/products", params={"sectionId": 10**20}).status_code == 422
    assert client.get(f"/api/sections/{10**20}").status_code == 422
    res = client.post("/api/categories", json={"title": "Huge", "sectionId": 10**20})
    assert res.status_code == 422
    assert "sectionId" in res.json()["errors"]
