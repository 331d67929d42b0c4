from slunch.db.store import KeyValueStore


class TestKeyValueStore:
    def test_get_missing_returns_none(self, store: KeyValueStore):
        assert store.get("meal", "nope") is None
        assert store.exists("meal", "nope") is False

    def test_put_overwrites(self, store):
        store.put("meal", "k", {"v": 1})
        store.put("meal", "k", {"v": 2})
        assert store.get("meal", "k") == {"v": 2}
        assert store.count("meal") == 1

    def test_put_if_absent_keeps_first_writer(self, store):
        assert store.put_if_absent("meal", "k", {"v": 1}) is True
        assert store.put_if_absent("meal", "k", {"v": 2}) is False
        assert store.get("meal", "k") == {"v": 1}

    def test_collections_are_isolated(self, store):
        store.put("meal", "k", 1)
        store.put("school", "k", 2)
        assert store.get("meal", "k") == 1
        assert store.get("school", "k") == 2

    def test_range_is_half_open_and_ordered(self, store):
        for day in ["2025-03-03", "2025-03-01", "2025-03-05", "2025-03-04"]:
            store.put("meal", f"B10_1_{day}", day)
        entries = store.range("meal", "B10_1_2025-03-01", "B10_1_2025-03-05")
        assert [value for _, value in entries] == ["2025-03-01", "2025-03-03", "2025-03-04"]

    def test_prefix_scan(self, store):
        store.put("meal", "B10_1_2025-03-31", "march")
        store.put("meal", "B10_1_2025-04-01", "april")
        store.put("meal", "B10_12_2025-03-02", "other school")
        assert [v for _, v in store.prefix("meal", "B10_1_2025-03")] == ["march"]

    def test_remove(self, store):
        store.put("meal", "k", 1)
        assert store.remove("meal", "k") is True
        assert store.remove("meal", "k") is False

    def test_clear_only_touches_collection(self, store):
        store.put("school", "a", [])
        store.put("school", "b", [])
        store.put("meal", "c", {})
        assert store.clear("school") == 2
        assert store.count("school") == 0
        assert store.count("meal") == 1

    def test_items(self, store):
        store.put("fcm_meal", "t2", {"token": "t2"})
        store.put("fcm_meal", "t1", {"token": "t1"})
        assert [key for key, _ in store.items("fcm_meal")] == ["t1", "t2"]
