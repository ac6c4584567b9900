"""Unit tests for the Item Store and its category table."""

import threading
import pytest

from keyringdesk.core.exceptions import StateError
from keyringdesk.core.models import Item
from keyringdesk.core.ring import Ring
from keyringdesk.core.store import ItemStore


# ==============================================================================
# Fixtures
# ==============================================================================

@pytest.fixture
def store():
    return ItemStore()


@pytest.fixture
def ring():
    return Ring("pw")


# ==============================================================================
# Tests: Items
# ==============================================================================

def test_add_get_remove(store, ring):
    item = Item(ring, "gmail")
    store.add(item)

    assert store.get("gmail") is item
    assert "gmail" in store
    assert len(store) == 1
    assert store.remove("gmail") is True
    assert store.get("gmail") is None
    assert store.remove("gmail") is False


def test_add_overwrites_same_title(store, ring):
    store.add(Item(ring, "gmail", username="old"))
    store.add(Item(ring, "gmail", username="new"))

    assert len(store) == 1
    assert store.get("gmail").username == "new"


def test_remove_drops_back_reference(store, ring):
    item = Item(ring, "gmail")
    store.add(item)
    store.remove("gmail")
    with pytest.raises(StateError):
        item.lock()


def test_items_and_titles(store, ring):
    for title in ("a", "b", "c"):
        store.add(Item(ring, title))
    assert sorted(i.title for i in store.items()) == ["a", "b", "c"]
    assert sorted(store.titles()) == ["a", "b", "c"]


def test_clear(store, ring):
    store.add(Item(ring, "a"))
    store.clear()
    assert len(store) == 0


# ==============================================================================
# Tests: Categories
# ==============================================================================

def test_default_categories(store):
    assert store.categories_by_id() == {0: "Unfiled", -1: "All"}
    assert store.category_name_for_id(0) == "Unfiled"
    assert store.category_name_for_id(-1) == "All"


def test_new_ids_count_up_from_one(store):
    assert store.category_id_for_name("Mail") == 1
    assert store.category_id_for_name("Bank") == 2
    assert store.category_id_for_name("Mail") == 1


def test_unfiled_lookup_is_case_insensitive(store):
    assert store.category_id_for_name("unfiled") == 0
    assert store.category_id_for_name("UNFILED") == 0
    assert store.category_name_for_id(0) == "Unfiled"
    assert len(store.categories_by_id()) == 2


def test_name_id_bijection(store):
    names = ["Mail", "Bank", "Work", "mail"]
    ids = [store.category_id_for_name(n) for n in names]
    assert len(set(ids)) == len(names)
    for name, category_id in zip(names, ids):
        assert store.category_name_for_id(category_id) == name


def test_unknown_id_is_state_error(store):
    with pytest.raises(StateError, match="No category found for id 7"):
        store.category_name_for_id(7)


def test_categories_listing(store):
    for name in ("Zeta", "Alpha", "Mail"):
        store.category_id_for_name(name)
    assert store.categories() == ["Unfiled", "Alpha", "Mail", "Zeta"]


def test_categories_listing_when_empty(store):
    assert store.categories() == ["Unfiled"]


def test_load_categories_reinstates_defaults(store):
    store.load_categories({3: "Bank", 5: "Mail"})
    assert store.categories_by_id() == {3: "Bank", 5: "Mail", 0: "Unfiled", -1: "All"}


def test_load_categories_none_gives_defaults(store):
    store.load_categories(None)
    assert store.categories_by_id() == {0: "Unfiled", -1: "All"}


def test_counter_resumes_after_loaded_ids(store):
    store.load_categories({3: "Bank", 5: "Mail"})
    assert store.category_id_for_name("Bank") == 3
    assert store.category_id_for_name("New") == 6


def test_concurrent_allocation():
    """Two callers racing on "A", "B", "A" see one id for "A" and two ids in total."""
    for _ in range(50):
        store = ItemStore()
        barrier = threading.Barrier(2)
        results = [[], []]

        def worker(slot):
            barrier.wait()
            for name in ("A", "B", "A"):
                results[slot].append(store.category_id_for_name(name))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        a_ids = {r[0] for r in results} | {r[2] for r in results}
        assert len(a_ids) == 1
        assert len({i for r in results for i in r}) == 2
        assert store.category_name_for_id(a_ids.pop()) == "A"
