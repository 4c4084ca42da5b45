"""Unit tests for hash -> uid resolution."""

from docmirror.graph.resolver import HashResolver

from .conftest import make_doc


class TestHashResolver:
    """Tests for HashResolver."""

    def test_empty_input_skips_store(self, store):
        """No hashes, no round trip."""
        assert HashResolver(store).resolve([]) == {}
        assert store.queries == []

    def test_missing_hashes_are_absent(self, sync, store):
        """Unknown hashes are left out, not errors."""
        uid = sync.store_document(make_doc("a"))
        store.queries.clear()

        out = HashResolver(store).resolve(["a", "nope"])

        assert out == {"a": uid}
        assert len(store.queries) == 1

    def test_single_batched_query(self, sync, store):
        """All hashes are resolved in one query, each bound as a variable."""
        uids = {h: sync.store_document(make_doc(h)) for h in ("a", "b", "c")}
        store.queries.clear()

        out = HashResolver(store).resolve(["a", "b", "c", "a"])

        assert out == uids
        assert len(store.queries) == 1
        text, variables = store.queries[0]
        assert variables == {"$h0": "a", "$h1": "b", "$h2": "c"}
        for h in ("a", "b", "c"):
            assert f'"{h}"' not in text

    def test_resolve_one(self, sync, store):
        uid = sync.store_document(make_doc("a"))
        resolver = HashResolver(store)
        assert resolver.resolve_one("a") == uid
        assert resolver.resolve_one("b") is None
