"""Tests for the catalog service used by the dashboard and product pages"""

import json

from crud_app.models.product import ProductInput


def test_product_scenario(catalog, sessions, store):
    sessions.login("user", "user123")
    result = catalog.save_product({"name": "Widget", "category": "Tools", "price": 9.99, "stock": 3})
    assert result.success, result.message
    product = result.data
    assert product.created_by == 2
    assert product.id not in (1, 2, 3)

    updated = store.update_product(product.id, {"stock": 0})
    assert updated.stock == 0
    assert (updated.name, updated.category, updated.price) == ("Widget", "Tools", 9.99)

    assert catalog.delete_product(product.id).success
    assert store.find_product_by_id(product.id) is None


def test_save_product_requires_login(catalog, store):
    result = catalog.save_product({"name": "Widget", "category": "Tools", "price": 1, "stock": 1})
    assert result.error == "unauthenticated"
    assert store.count_products() == 3


def test_save_product_validates_input(catalog, sessions):
    sessions.login("user", "user123")
    result = catalog.save_product({"name": "Widget", "category": "Tools", "price": -1, "stock": 1})
    assert result.error == "invalid_input"
    assert "price" in result.message

    result = catalog.save_product({"name": "Widget", "category": "Tools", "price": 1, "stock": -2})
    assert result.error == "invalid_input"


def test_save_product_updates_existing(catalog, sessions):
    sessions.login("admin", "admin123")
    result = catalog.save_product(
        ProductInput(name="Dell Laptop", category="Technology", price=1100, stock=10, description="Sale"), 1
    )
    assert result.success
    assert result.data.price == 1100
    assert result.data.description == "Sale"
    assert result.data.created_by == 1


def test_update_unknown_product(catalog, sessions):
    sessions.login("admin", "admin123")
    result = catalog.save_product({"name": "X", "category": "Y", "price": 1, "stock": 1}, 999)
    assert result.error == "not_found"


def test_delete_unknown_product(catalog, sessions):
    sessions.login("admin", "admin123")
    assert catalog.delete_product(999).error == "not_found"


def test_search_products(catalog):
    assert [p.name for p in catalog.search_products("mouse")] == ["Wireless Mouse"]
    assert len(catalog.search_products("ACCESS")) == 2
    assert [p.id for p in catalog.search_products(category="Technology")] == [1]
    assert catalog.search_products("keyboard", category="Technology") == []
    assert len(catalog.search_products()) == 3


def test_list_categories(catalog):
    assert catalog.list_categories() == ["Technology", "Accessories"]


def test_creator_name(catalog, store):
    assert catalog.creator_name(store.find_product_by_id(3)) == "Demo User"
    orphan = store.create_product({"name": "Lost", "category": "Misc", "price": 1, "stock": 1}, 999)
    assert catalog.creator_name(orphan) == "Unknown"


def test_dashboard_stats(catalog, sessions):
    sessions.login("admin", "admin123")
    stats = catalog.dashboard_stats()
    assert stats.total_users == 2
    assert stats.total_products == 3
    assert stats.active_sessions == 1
    assert stats.total_inventory_value == 1200 * 15 + 25 * 100 + 80 * 45
    assert [p.id for p in stats.recent_products] == [3, 2, 1]


def test_recent_products_limited_to_five(catalog, sessions):
    sessions.login("admin", "admin123")
    for i in range(4):
        catalog.save_product({"name": f"Item {i}", "category": "Misc", "price": 1, "stock": 1})
    recent = catalog.dashboard_stats().recent_products
    assert len(recent) == 5
    assert recent[0].name == "Item 3"


def test_storage_counts(catalog, sessions):
    sessions.login("user", "user123")
    assert catalog.storage_counts() == {"users": 2, "products": 3, "sessions": 1}


def test_list_users_admin_only(catalog, sessions):
    assert catalog.list_users().error == "unauthenticated"

    sessions.login("user", "user123")
    result = catalog.list_users()
    assert result.error == "unauthorized"
    assert result.message

    sessions.login("admin", "admin123")
    result = catalog.list_users()
    assert result.success
    assert all("password_hash" not in u.model_dump() for u in result.data)


def test_reset_database(catalog, sessions, store):
    sessions.login("user", "user123")
    catalog.save_product({"name": "Widget", "category": "Tools", "price": 1, "stock": 1})
    assert catalog.reset_database().error == "unauthorized"
    assert store.count_products() == 4

    sessions.login("admin", "admin123")
    assert catalog.reset_database().success
    assert store.count_products() == 3
    assert store.count_sessions() == 0
    assert sessions.current_user() is None


def test_export_data(catalog, sessions):
    assert catalog.export_data().error == "unauthenticated"
    sessions.login("admin", "admin123")
    document = catalog.export_data().data
    assert document["exported_by"] == "Main Administrator"
    assert len(document["users"]) == 2
    assert all("password_hash" not in u for u in document["users"])


def test_export_to_file(catalog, sessions, tmp_path):
    sessions.login("admin", "admin123")
    result = catalog.export_to_file(tmp_path / "backups")
    assert result.success
    path = result.data
    assert path.name.startswith("crud_backup_")
    assert path.suffix == ".json"
    document = json.loads(path.read_text(encoding="utf-8"))
    assert len(document["products"]) == 3
