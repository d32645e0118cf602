import uuid

import pytest

from documet.cache.store import ResponseCache
from documet.tenants import InvalidTenantError, namespace_for


class TestResponseCache:

    def test_get_set_per_kind(self):
        cache = ResponseCache()
        doc = uuid.uuid4()
        cache.set(doc, "summary", "short")

        assert cache.get(doc, "summary") == "short"
        assert cache.get(doc, "questions") is None

    def test_discard_only_touches_one_document(self):
        cache = ResponseCache()
        first, second = uuid.uuid4(), uuid.uuid4()
        cache.set(first, "summary", "a")
        cache.set(first, "questions", ["b?"])
        cache.set(second, "summary", "c")

        assert cache.discard(first) == 2
        assert cache.get(second, "summary") == "c"
        assert len(cache) == 1

    def test_oldest_entry_evicted(self):
        cache = ResponseCache(max_entries=2)
        cache.set("a", "summary", 1)
        cache.set("b", "summary", 2)
        cache.set("c", "summary", 3)

        assert cache.get("a", "summary") is None
        assert len(cache) == 2

    def test_clear_all(self):
        cache = ResponseCache()
        cache.set("a", "summary", 1)
        cache.clear_all()

        assert len(cache) == 0


class TestNamespaces:

    @pytest.mark.parametrize("user_id", ["alice", "user-42", "A_b"])
    def test_valid_user_ids(self, user_id):
        assert namespace_for(user_id) == f"user_{user_id}"

    @pytest.mark.parametrize("user_id", ["", "has space", "a/b", "x" * 65, None])
    def test_invalid_user_ids(self, user_id):
        with pytest.raises(InvalidTenantError):
            namespace_for(user_id)
