"""Tests for statekit.snapshot: immutable ordered snapshots and entry coercion."""

from collections.abc import Mapping

import pytest

from statekit.snapshot import Snapshot, coerce_entries
from statekit.types import InvalidArgument

# ── Construction ─────────────────────────────────────────────────────


class TestConstruction:
    def test_empty_by_default(self) -> None:
        s = Snapshot()
        assert len(s) == 0
        assert s.size == 0
        assert list(s) == []

    def test_from_pairs(self) -> None:
        s = Snapshot([(1, "a"), (2, "b")])
        assert s[1] == "a"
        assert s[2] == "b"
        assert list(s) == [1, 2]

    def test_from_list_pairs(self) -> None:
        s = Snapshot([[1, "x"], [2, "y"]])
        assert list(s.items()) == [(1, "x"), (2, "y")]

    def test_from_dict(self) -> None:
        s = Snapshot({"b": 2, "a": 1})
        assert list(s) == ["b", "a"]

    def test_from_snapshot_copies(self) -> None:
        original = Snapshot([(1, "a")])
        copy = Snapshot(original)
        assert copy is not original
        assert copy == original

    def test_duplicate_keys_keep_first_position(self) -> None:
        s = Snapshot([(1, "a"), (2, "b"), (1, "c")])
        assert list(s.items()) == [(1, "c"), (2, "b")]

    def test_from_generator(self) -> None:
        s = Snapshot((k, k * 10) for k in range(3))
        assert s.to_dict() == {0: 0, 1: 10, 2: 20}


# ── Read API ─────────────────────────────────────────────────────────


class TestRead:
    def test_get_missing_returns_none(self) -> None:
        assert Snapshot().get(1) is None

    def test_get_default(self) -> None:
        assert Snapshot().get(1, "fallback") == "fallback"

    def test_getitem_missing_raises(self) -> None:
        with pytest.raises(KeyError):
            _ = Snapshot()["missing"]

    def test_has_and_contains(self) -> None:
        s = Snapshot([("k", None)])
        assert s.has("k")
        assert "k" in s
        assert not s.has("other")
        assert "other" not in s

    def test_is_mapping(self) -> None:
        assert isinstance(Snapshot(), Mapping)

    def test_views_in_insertion_order(self) -> None:
        s = Snapshot([("z", 1), ("a", 2)])
        assert list(s.keys()) == ["z", "a"]
        assert list(s.values()) == [1, 2]

    def test_equality_by_content(self) -> None:
        assert Snapshot([(1, "a")]) == Snapshot({1: "a"})
        assert Snapshot([(1, "a")]) == {1: "a"}
        assert Snapshot([(1, "a")]) != Snapshot([(1, "b")])

    def test_unhashable(self) -> None:
        with pytest.raises(TypeError):
            hash(Snapshot())

    def test_identity_keys_for_objects(self) -> None:
        a, b = object(), object()
        s = Snapshot([(a, 1)])
        assert s.has(a)
        assert not s.has(b)

    def test_repr(self) -> None:
        assert repr(Snapshot([(1, "a")])) == "Snapshot({1: 'a'})"


# ── Immutability ─────────────────────────────────────────────────────


class TestImmutability:
    def test_no_item_assignment(self) -> None:
        s = Snapshot()
        with pytest.raises(TypeError):
            s["k"] = 1  # type: ignore[index]

    def test_no_new_attributes(self) -> None:
        s = Snapshot()
        with pytest.raises(AttributeError):
            s.extra = 1  # type: ignore[attr-defined]

    def test_to_dict_is_detached(self) -> None:
        s = Snapshot([(1, "a")])
        d = s.to_dict()
        d[2] = "b"
        assert 2 not in s

    def test_source_dict_is_detached(self) -> None:
        src = {1: "a"}
        s = Snapshot(src)
        src[2] = "b"
        assert len(s) == 1


# ── Copy-on-write derivation ─────────────────────────────────────────


class TestDerivation:
    def test_with_entry_appends_new_key(self) -> None:
        s = Snapshot([(1, "a")])
        nxt = s.with_entry(2, "b")
        assert list(nxt.items()) == [(1, "a"), (2, "b")]
        assert list(s.items()) == [(1, "a")]

    def test_with_entry_overwrites_in_place(self) -> None:
        s = Snapshot([(1, "a"), (2, "b"), (3, "c")])
        nxt = s.with_entry(2, "B")
        assert list(nxt.items()) == [(1, "a"), (2, "B"), (3, "c")]
        assert s[2] == "b"

    def test_without_removes(self) -> None:
        s = Snapshot([(1, "a"), (2, "b")])
        nxt = s.without(1)
        assert list(nxt) == [2]
        assert s.has(1)

    def test_without_absent_is_new_instance(self) -> None:
        s = Snapshot([(1, "a")])
        nxt = s.without(99)
        assert nxt is not s
        assert nxt == s


# ── Subclasses and from_entries ──────────────────────────────────────


class Tagged(Snapshot):
    __slots__ = ()


class TestSubclass:
    def test_derivations_keep_class(self) -> None:
        snap = Tagged([(1, "a")])
        added = snap.with_entry(2, "b")
        removed = snap.without(1)
        assert type(added) is Tagged
        assert type(removed) is Tagged
        assert added.to_dict() == {1: "a", 2: "b"}
        assert removed.size == 0

    def test_from_entries_builds_calling_class(self) -> None:
        snap = Tagged.from_entries({1: "a"})
        assert type(snap) is Tagged
        assert repr(snap) == "Tagged({1: 'a'})"

    def test_from_entries_copies_source(self) -> None:
        source = {1: "a"}
        snap = Snapshot.from_entries(source)
        source[2] = "b"
        assert list(snap) == [1]

    def test_from_entries_rejects_none(self) -> None:
        with pytest.raises(InvalidArgument, match="NoneType"):
            Snapshot.from_entries(None)  # type: ignore[arg-type]


# ── coerce_entries ───────────────────────────────────────────────────


class TestCoerceEntries:
    def test_mapping(self) -> None:
        assert coerce_entries({1: "a"}) == {1: "a"}

    def test_empty_iterable(self) -> None:
        assert coerce_entries([]) == {}

    @pytest.mark.parametrize(
        ("source", "match"),
        [
            (42, "int"),
            (None, "NoneType"),
            ("ab", "str"),
            (b"ab", "bytes"),
            ([1, 2], "entry 0"),
            ([(1, "a"), (2,)], "entry 1"),
            ([(1, "a", "extra")], "entry 0"),
            (["ab"], "entry 0 is a str"),
            ([([1], "a")], "unhashable"),
            ([((1, [2]), "a")], "unhashable"),
        ],
    )
    def test_malformed_sources_raise(self, source: object, match: str) -> None:
        with pytest.raises(InvalidArgument, match=match):
            coerce_entries(source)

    def test_rejection_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("WARNING", logger="statekit"), pytest.raises(InvalidArgument):
            coerce_entries(7)
        assert any("invalid entry source" in r.getMessage() for r in caplog.records)
