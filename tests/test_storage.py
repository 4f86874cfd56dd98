import json
from types import SimpleNamespace

import pytest

from formgen.storage import (
    FallbackRepository,
    FileStore,
    RedisStore,
    StorageError,
    SupabaseStore,
    _Store,
    match_label,
)


class BrokenStore(_Store):
    name = "supabase"

    def _boom(self, *args, **kwargs):
        raise StorageError("primary down")

    create_form_config = get_form_config = list_form_configs = _boom
    create_form_response = list_form_responses = list_form_responses_by_label = _boom


class PrimaryFileStore(FileStore):
    name = "primary"


class FakeRedis:
    def __init__(self):
        self.counters = {}
        self.hashes = {}

    def incr(self, key):
        self.counters[key] = self.counters.get(key, 0) + 1
        return self.counters[key]

    def hset(self, key, field, value):
        self.hashes.setdefault(key, {})[field] = value

    def hget(self, key, field):
        return self.hashes.get(key, {}).get(field)

    def hgetall(self, key):
        return dict(self.hashes.get(key, {}))


class FakeQuery:
    def __init__(self, table, rows, inserted):
        self.table = table
        self.rows = rows
        self.inserted = inserted
        self.filters = []
        self.pending_insert = None

    def insert(self, row):
        self.pending_insert = row
        return self

    def select(self, *_):
        return self

    def eq(self, key, value):
        self.filters.append((key, value))
        return self

    def limit(self, _):
        return self

    def order(self, *_, **__):
        return self

    def execute(self):
        if self.pending_insert is not None:
            row = dict(self.pending_insert, id=len(self.rows) + 1, created_at="2024-01-01T00:00:00+00:00")
            self.rows.append(row)
            self.inserted.append((self.table, self.pending_insert))
            return SimpleNamespace(data=[row])
        data = [r for r in self.rows if all(r.get(k) == v for k, v in self.filters)]
        return SimpleNamespace(data=data)


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.inserted = []

    def table(self, name):
        return FakeQuery(name, self.tables.setdefault(name, []), self.inserted)


@pytest.fixture
def store(tmp_path):
    return FileStore(tmp_path / "store.json")


def test_file_store_roundtrip(store, tmp_path):
    first = store.create_form_config("Bakery order", {"steps": [1]})
    second = store.create_form_config("Garden design", {"steps": [2]})
    assert (first, second) == (1, 2)
    assert store.get_form_config(1)["label"] == "Bakery order"
    assert store.get_form_config(99) is None
    assert [r["id"] for r in store.list_form_configs()] == [2, 1]
    assert not (tmp_path / "store.tmp").exists()

    reopened = FileStore(tmp_path / "store.json")
    assert reopened.create_form_config("Third", {}) == 3


def test_file_store_rejects_corrupt_file(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("[1, 2", encoding="utf-8")
    with pytest.raises(StorageError):
        FileStore(path).list_form_configs()


def test_responses_by_label_exact_then_partial(store):
    store.create_form_response("Plumbing quote", {"a": 1})
    store.create_form_response("Garden design", {"b": 2})
    store.create_form_response("garden design extended", {"c": 3})

    assert [r["response"] for r in store.list_form_responses_by_label("Plumbing quote")] == [{"a": 1}]
    assert [r["label"] for r in store.list_form_responses_by_label("PLUMBING")] == ["Plumbing quote"]
    assert [r["label"] for r in store.list_form_responses_by_label("Garden design")] == ["Garden design"]
    assert len(store.list_form_responses_by_label("garden")) == 2
    assert [r["label"] for r in store.list_form_responses_by_label("I need a plumbing quote form")] == ["Plumbing quote"]
    assert store.list_form_responses_by_label("zzz") == []


def test_match_label_ignores_unlabeled_rows():
    rows = [{"label": None}, {"label": ""}, {"label": "Quote"}]
    assert match_label(rows, "quote") == [{"label": "Quote"}]
    assert match_label(rows, "") == []


def test_fallback_uses_secondary_when_primary_fails(store):
    repo = FallbackRepository(BrokenStore(), store)
    form_id, source = repo.create_form_config("Label", {"steps": []})
    assert (form_id, source) == (1, "file")
    form, source = repo.get_form_config(1)
    assert form["label"] == "Label" and source == "file"
    rows, source = repo.list_by_label("label")
    assert rows == [] and source == "file"


def test_fallback_prefers_primary(tmp_path, store):
    primary = PrimaryFileStore(tmp_path / "primary.json")
    repo = FallbackRepository(primary, store)
    form_id, source = repo.save("Label", {})
    assert source == "primary"
    rows, source = repo.list()
    assert [r["id"] for r in rows] == [form_id] and source == "primary"
    assert store.list_form_configs() == []


def test_fallback_get_consults_secondary_on_primary_miss(tmp_path, store):
    primary = PrimaryFileStore(tmp_path / "primary.json")
    store.create_form_config("Only in secondary", {})
    repo = FallbackRepository(primary, store)
    form, source = repo.get(1)
    assert form["label"] == "Only in secondary"
    assert source == "file"


def test_fallback_without_primary(store):
    repo = FallbackRepository(None, store)
    resp_id, source = repo.create_form_response("L", {"x": 1}, "de", "portal-1", 7)
    assert source == "file"
    row = store.list_form_responses()[0]
    assert row["id"] == resp_id
    assert row["language"] == "de"
    assert row["form_config_id"] == 7


def test_secondary_failure_propagates():
    repo = FallbackRepository(BrokenStore(), BrokenStore())
    with pytest.raises(StorageError):
        repo.list_form_configs()


def test_redis_store_with_fake_client():
    fake = FakeRedis()
    rs = RedisStore(prefix="t", client=fake)
    assert rs.create_form_config("A", {"steps": []}) == 1
    assert rs.create_form_config("B", {"steps": []}) == 2
    assert rs.get_form_config(2)["label"] == "B"
    assert rs.get_form_config(5) is None
    assert fake.counters["t:form_config:seq"] == 2
    assert json.loads(fake.hashes["t:form_config"]["1"])["label"] == "A"
    rs.create_form_response("A form", {"k": "v"})
    assert rs.list_form_responses_by_label("a form")[0]["response"] == {"k": "v"}


def test_supabase_store_maps_response_data():
    fake = FakeSupabase()
    sb = SupabaseStore(client=fake)
    assert sb.configured
    sb.create_form_response("Quote", {"q": 1}, form_config_id=3)
    table, row = fake.inserted[0]
    assert table == "form_responses"
    assert row["response_data"] == {"q": 1}
    rows = sb.list_form_responses_by_label("Quote")
    assert rows[0]["response"] == {"q": 1}
    assert "response_data" not in rows[0]

    form_id = sb.create_form_config("Quote", {"steps": []})
    assert sb.get_form_config(form_id)["label"] == "Quote"
    assert sb.get_form_config(42) is None


def test_unconfigured_supabase_raises_storage_error():
    sb = SupabaseStore(url="", key="")
    assert not sb.configured
    with pytest.raises(StorageError):
        sb.list_form_configs()
