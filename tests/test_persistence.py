"""Tests for mirroring a Stowrage to durable storage."""

from typing import Iterable

import pytest

from stowrage import Mirror, NameDuplicationError, NonPersistentError, Stowrage, pickle_codec


class Recording(Mirror):
    """In-memory mirror that records every call."""

    def __init__(self, rows: dict[int, tuple[str, str]] | None = None) -> None:
        self.data: dict[int, tuple[str, str]] = dict(rows or {})
        self.calls: list[tuple] = []
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        self._open = True

    def close(self) -> None:
        self._open = False

    def rows(self) -> Iterable[tuple[int, str, str]]:
        return [(id, name, data) for id, (name, data) in sorted(self.data.items())]

    def insert(self, id: int, name: str, data: str) -> None:
        self.calls.append(("insert", id, name, data))
        assert id not in self.data
        self.data[id] = (name, data)

    def replace(self, id: int, name: str, data: str) -> None:
        self.calls.append(("replace", id, name, data))
        self.data[id] = (name, data)

    def delete(self, id: int) -> None:
        self.calls.append(("delete", id))
        self.data.pop(id, None)

    def delete_name(self, name: str) -> None:
        self.calls.append(("delete_name", name))
        self.data = {k: v for k, v in self.data.items() if v[0] != name}

    def delete_range(self, start: int, end: int) -> None:
        self.calls.append(("delete_range", start, end))
        self.data = {k: v for k, v in self.data.items() if not start <= k <= end}

    def clear(self) -> None:
        self.calls.append(("clear",))
        self.data.clear()


def mirrored(s: Stowrage) -> dict[int, tuple[str, str]]:
    return {e.id: (e.name, s._codec.encode(e.data)) for e in s}


@pytest.fixture
def recorded(tmp_path):
    m = Recording()
    s = Stowrage("rec", persistent=True, path=tmp_path, mirror=m)
    s.init()
    return s, m


class TestInit:
    def test_requires_persistent(self, tmp_path):
        s = Stowrage("x", path=tmp_path)
        with pytest.raises(NonPersistentError, match="initiated"):
            s.init()

    def test_requires_name(self):
        s = Stowrage(persistent=True)
        with pytest.raises(NonPersistentError, match="unnamed db"):
            s.init()

    def test_close_without_init(self, tmp_path):
        s = Stowrage("x", persistent=True, path=tmp_path)
        with pytest.raises(NonPersistentError, match="closed"):
            s.close()

    def test_close_twice(self, recorded):
        s, _ = recorded
        s.close()
        with pytest.raises(NonPersistentError):
            s.close()

    def test_init_twice_is_noop(self, recorded):
        s, m = recorded
        s.add("a", 1)
        s.init()
        assert s.total_entries() == 1
        assert m.calls == [("insert", 0, "a", "1")]

    def test_replay_keeps_ids(self, tmp_path):
        m = Recording({2: ("b", '"two"'), 5: ("e", "[5]")})
        s = Stowrage("rec", persistent=True, path=tmp_path, mirror=m)
        s.init()
        assert s.fetch("b").id == 2
        assert s.fetch_by_id(5).data == [5]
        assert s.next_id == 6
        assert m.calls == []

    def test_replay_applies_eviction(self, tmp_path):
        m = Recording({0: ("a", "0"), 1: ("b", "1"), 2: ("c", "2")})
        s = Stowrage("rec", max_entries=2, persistent=True, path=tmp_path, mirror=m)
        s.init()
        assert [e.name for e in s] == ["b", "c"]
        assert m.calls == [("delete_name", "a")]
        assert mirrored(s) == m.data

    def test_entries_added_before_init_are_written(self, tmp_path):
        m = Recording({0: ("stored", "1")})
        s = Stowrage("rec", persistent=True, path=tmp_path, mirror=m)
        s.add("early", 2)
        s.init()
        assert s.fetch("early").id == 0
        assert s.fetch("stored").id == 1
        assert s.fetch("stored").data == 1
        assert mirrored(s) == m.data
        assert s.next_id == 2

    def test_name_clash_before_init_raises(self, tmp_path):
        m = Recording({0: ("a", "1"), 1: ("b", "2")})
        s = Stowrage("rec", persistent=True, path=tmp_path, mirror=m)
        s.add("b", 5)
        with pytest.raises(NameDuplicationError, match="'b'"):
            s.init()
        assert m.calls == []
        assert m.data == {0: ("a", "1"), 1: ("b", "2")}
        assert not s.is_persistent
        assert [(e.id, e.name, e.data) for e in s] == [(0, "b", 5)]

    def test_reinit_after_close_keeps_memory(self, recorded):
        s, m = recorded
        s.add("a", 1)
        s.add("b", 2)
        s.close()
        s.delete("a")
        s.add("c", 3)
        s.init()
        assert [e.name for e in s] == ["b", "c"]
        assert mirrored(s) == m.data

    def test_is_persistent(self, recorded):
        s, _ = recorded
        assert s.is_persistent
        s.close()
        assert not s.is_persistent


class TestMirrorWrites:
    def test_add_inserts(self, recorded):
        s, m = recorded
        s.add("a", {"x": 1})
        assert m.calls == [("insert", 0, "a", '{"x": 1}')]

    def test_override_replaces(self, recorded):
        s, m = recorded
        s.add("a", 1)
        s.override("a", 2)
        assert m.calls[-1] == ("replace", 0, "a", "2")

    def test_set_value_replaces(self, recorded):
        s, m = recorded
        s.add("a", {"x": 1, "y": 2})
        s.set_value("a", 5, key="y")
        assert m.calls[-1] == ("replace", 0, "a", '{"x": 1, "y": 5}')

    def test_delete_by_id(self, recorded):
        s, m = recorded
        s.add("a", 1)
        s.delete_by_id(0)
        assert m.calls[-1] == ("delete", 0)
        assert m.data == {}

    def test_eviction_deletes_by_name(self, tmp_path):
        m = Recording()
        s = Stowrage("rec", max_entries=1, persistent=True, path=tmp_path, mirror=m)
        s.init()
        s.add("a", 1)
        s.add("b", 2)
        assert m.calls[-1] == ("delete_name", "a")
        assert mirrored(s) == m.data

    def test_range_delete(self, recorded):
        s, m = recorded
        for i in range(5):
            s.add(f"k{i}", i)
        s.delete_by_range(1, 2)
        assert m.calls[-1] == ("delete_range", 1, 3)
        assert mirrored(s) == m.data

    def test_range_delete_clear_branch(self, recorded):
        s, m = recorded
        s.add("a", 1)
        s.delete_by_range(0, 5)
        assert m.calls[-1] == ("clear",)

    def test_delete_stowrage_clears(self, recorded):
        s, m = recorded
        s.add("a", 1)
        s.delete_stowrage()
        assert m.data == {}

    def test_failed_operations_do_not_write(self, recorded):
        s, m = recorded
        s.add("a", 1)
        calls = list(m.calls)
        for op in (
            lambda: s.add("a", 2),
            lambda: s.delete("b"),
            lambda: s.override_by_id(9, 1),
        ):
            with pytest.raises(Exception):
                op()
        assert m.calls == calls

    def test_no_writes_after_close(self, recorded):
        s, m = recorded
        s.close()
        s.add("a", 1)
        assert m.calls == []
        assert s.has("a")


@pytest.fixture(params=["sqlite", "disk"])
def storage(request):
    return request.param


class TestRoundTrip:
    def test_reopen_restores_entries(self, tmp_path, storage):
        s = Stowrage("round", persistent=True, path=tmp_path, storage=storage)
        s.init()
        s.add("a", {"n": 1})
        s.add("b", [1, 2])
        s.add("c", "three")
        s.override("b", [3])
        s.set_value("a", 2, key="n")
        s.delete("c")
        s.add("d", None)
        before = list(s)
        s.close()

        s2 = Stowrage("round", persistent=True, path=tmp_path, storage=storage)
        s2.init()
        assert list(s2) == before
        assert s2.next_id == 4
        s2.close()

    def test_reopen_after_range_delete(self, tmp_path, storage):
        s = Stowrage("round", persistent=True, path=tmp_path, storage=storage)
        s.init()
        for i in range(6):
            s.add(f"k{i}", i)
        s.delete_by_range(1, 2)
        before = list(s)
        s.close()

        s2 = Stowrage("round", persistent=True, path=tmp_path, storage=storage)
        s2.init()
        assert list(s2) == before
        s2.close()

    def test_reopen_after_clear(self, tmp_path, storage):
        s = Stowrage("round", persistent=True, path=tmp_path, storage=storage)
        s.init()
        s.add("a", 1)
        s.delete_stowrage()
        s.add("b", 2)
        s.close()

        s2 = Stowrage("round", persistent=True, path=tmp_path, storage=storage)
        s2.init()
        assert [(e.id, e.name, e.data) for e in s2] == [(0, "b", 2)]
        s2.close()

    def test_reopen_with_eviction(self, tmp_path, storage):
        s = Stowrage("round", max_entries=2, persistent=True, path=tmp_path, storage=storage)
        s.init()
        for name in "abc":
            s.add(name, name)
        s.close()

        s2 = Stowrage("round", max_entries=2, persistent=True, path=tmp_path, storage=storage)
        s2.init()
        assert [e.name for e in s2] == ["b", "c"]
        s2.close()

    def test_pickle_codec(self, tmp_path, storage):
        s = Stowrage("round", persistent=True, path=tmp_path, storage=storage, codec=pickle_codec())
        s.init()
        s.add("a", {1, 2, 3})
        s.close()

        s2 = Stowrage("round", persistent=True, path=tmp_path, storage=storage, codec=pickle_codec())
        s2.init()
        assert s2.fetch("a").data == {1, 2, 3}
        s2.close()

    def test_file_layout(self, tmp_path, storage):
        s = Stowrage("layout", persistent=True, path=tmp_path, storage=storage)
        s.init()
        s.close()
        if storage == "sqlite":
            assert (tmp_path / "layout.db").is_file()
        else:
            assert (tmp_path / "layout").is_dir()

    def test_stored_rows_survive_early_entries(self, tmp_path, storage):
        s = Stowrage("round", persistent=True, path=tmp_path, storage=storage)
        s.init()
        s.add("stored", 1)
        s.close()

        s2 = Stowrage("round", persistent=True, path=tmp_path, storage=storage)
        s2.add("early", 2)
        s2.init()
        before = list(s2)
        s2.close()

        s3 = Stowrage("round", persistent=True, path=tmp_path, storage=storage)
        s3.init()
        assert s3.has("stored")
        assert list(s3) == before
        s3.close()

    def test_deletes_while_closed_stay_deleted(self, tmp_path, storage):
        s = Stowrage("round", persistent=True, path=tmp_path, storage=storage)
        s.init()
        s.add("a", 1)
        s.add("b", 2)
        s.close()
        s.delete("a")
        s.init()
        assert not s.has("a")
        s.close()

        s2 = Stowrage("round", persistent=True, path=tmp_path, storage=storage)
        s2.init()
        assert [e.name for e in s2] == ["b"]
        s2.close()
