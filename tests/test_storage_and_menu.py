import json

from conftest import make_item
from storefront.app.menu import MenuCatalog, MenuCategory, SPECIALS_CATEGORY_ID, load_catalog
from storefront.app.storage import JsonFileStore


def test_json_store_missing_file_is_empty(tmp_path):
    store = JsonFileStore(tmp_path / "nope" / "store.json")
    assert store.get("jp_specials") is None


def test_json_store_round_trip(tmp_path):
    path = tmp_path / "data" / "store.json"
    JsonFileStore(path).set("jp_specials", "[]")
    assert JsonFileStore(path).get("jp_specials") == "[]"
    assert not path.with_suffix(".json.tmp").exists()


def test_json_store_corrupt_file_degrades(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{oops", encoding="utf-8")
    store = JsonFileStore(path)
    assert store.get("jp_specials") is None
    store.set("jp_specials", "[]")
    assert json.loads(path.read_text(encoding="utf-8")) == {"jp_specials": "[]"}


def test_json_store_non_object_degrades(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert JsonFileStore(path).get("anything") is None


def test_load_catalog(tmp_path):
    path = tmp_path / "menu.json"
    path.write_text(
        json.dumps(
            [
                {
                    "id": "parathas",
                    "label": "Parathas",
                    "items": [
                        {"id": "aloo", "name": "Aloo Paratha", "price": 60, "image": "aloo.jpg"},
                        {"id": "gobi", "name": "Gobi Paratha", "price": 70, "image": "gobi.jpg",
                         "tags": {"is_veg": True, "is_spicy": True}},
                    ],
                },
                {"id": "drinks", "label": "Drinks", "items": []},
            ]
        ),
        encoding="utf-8",
    )
    categories = load_catalog(path)
    assert [c.id for c in categories] == ["parathas", "drinks"]
    assert categories[0].items[1].tags.is_spicy


def test_load_catalog_missing_or_invalid(tmp_path):
    assert load_catalog(None) == []
    assert load_catalog(tmp_path / "missing.json") == []
    bad = tmp_path / "bad.json"
    bad.write_text("[{\"label\": \"no id\"}]", encoding="utf-8")
    assert load_catalog(bad) == []


def test_pool_flattens_categories_with_specials_first():
    specials = []
    catalog = MenuCatalog(
        [
            MenuCategory(id="parathas", label="Parathas", items=[make_item("aloo", 60), make_item("gobi", 70)]),
            MenuCategory(id="drinks", label="Drinks", items=[make_item("chai", 20)]),
        ],
        specials=lambda: specials,
    )
    assert [item.id for item in catalog.pool()] == ["aloo", "gobi", "chai"]

    specials.append(make_item("custom-1", 150, is_custom=True))
    categories = catalog.categories()
    assert categories[0].id == SPECIALS_CATEGORY_ID
    assert categories[0].label == "Today's Special"
    assert [item.id for item in catalog.pool()] == ["custom-1", "aloo", "gobi", "chai"]
    assert catalog.find("custom-1").is_custom
    assert catalog.find("missing") is None
