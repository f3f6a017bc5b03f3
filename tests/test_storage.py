import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import logging
import pytest
from storefront.cart import CartManager
from storefront.storage import (
    JsonFileStore,
    MemoryStore,
    is_valid_visitor_id,
    new_visitor_id,
    visitor_store,
)


def test_memory_store_wraps_mapping():
    backing = {}
    store = MemoryStore(backing)
    store.set("k", "v")
    assert backing == {"k": "v"}
    assert store.get("k") == "v"
    store.remove("k")
    store.remove("k")
    assert store.get("k") is None


def test_memory_store_ignores_non_string_values():
    store = MemoryStore({"k": 42})
    assert store.get("k") is None


def test_file_store_is_durable(tmp_path):
    path = tmp_path / "state" / "storage.json"
    JsonFileStore(path).set("bike_shop_cart", "[]")
    assert JsonFileStore(path).get("bike_shop_cart") == "[]"


def test_file_store_rereads_on_every_get(tmp_path):
    path = tmp_path / "storage.json"
    first, second = JsonFileStore(path), JsonFileStore(path)
    first.set("k", "1")
    second.set("k", "2")
    assert first.get("k") == "2"  # последняя запись побеждает


def test_file_store_remove(tmp_path):
    store = JsonFileStore(tmp_path / "storage.json")
    store.set("a", "1")
    store.set("b", "2")
    store.remove("a")
    assert store.get("a") is None
    assert store.get("b") == "2"


def test_file_store_corrupt_file_reads_empty(tmp_path, caplog):
    path = tmp_path / "storage.json"
    path.write_text("{oops", encoding="utf-8")
    store = JsonFileStore(path)
    with caplog.at_level(logging.WARNING):
        assert store.get("k") is None
    assert "не прочитано" in caplog.text
    store.set("k", "v")
    assert store.get("k") == "v"


def test_file_store_non_object_reads_empty(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert JsonFileStore(path).get("k") is None


def test_file_store_write_failure_is_swallowed(tmp_path, caplog):
    target = tmp_path / "occupied"
    target.mkdir()
    store = JsonFileStore(target)  # каталог вместо файла
    with caplog.at_level(logging.WARNING):
        store.set("k", "v")
    assert "Не удалось записать" in caplog.text
    assert sorted(os.listdir(tmp_path)) == ["occupied"]  # временный файл удалён


def test_cart_over_file_store(tmp_path):
    path = tmp_path / "storage.json"
    CartManager(JsonFileStore(path)).add_to_cart("m1", 2, {"size": "M"})
    assert CartManager(JsonFileStore(path)).cart_count() == 2


# ============ Хранилище посетителя ============


def test_visitors_do_not_share_cart(tmp_path):
    alice, bob = new_visitor_id(), new_visitor_id()
    CartManager(visitor_store(tmp_path, alice)).add_to_cart("m1", 2)
    assert CartManager(visitor_store(tmp_path, bob)).get_cart() == ()
    assert CartManager(visitor_store(tmp_path, alice)).cart_count() == 2


def test_same_visitor_sees_own_state_after_reload(tmp_path):
    visitor = new_visitor_id()
    CartManager(visitor_store(tmp_path, visitor)).add_to_cart("acc1", 1)
    assert CartManager(visitor_store(tmp_path, visitor)).cart_count() == 1
    assert os.listdir(tmp_path) == [f"{visitor}.json"]


def test_new_visitor_id_is_valid_and_unique():
    first, second = new_visitor_id(), new_visitor_id()
    assert is_valid_visitor_id(first)
    assert first != second


@pytest.mark.parametrize(
    "visitor_id", ["../etc", "", None, "ABC", "0" * 31, "0" * 32 + "\n", "g" * 32]
)
def test_invalid_visitor_id_rejected(tmp_path, visitor_id):
    assert not is_valid_visitor_id(visitor_id)
    with pytest.raises(ValueError):
        visitor_store(tmp_path, visitor_id)
