"""Form config / form response persistence with a primary -> secondary fallback.

Supabase is the primary store when configured. The secondary is Redis when
REDIS_URL is set, otherwise a JSON file on disk. Every repository call returns
`(result, source)` where `source` names the backend that answered.
"""
from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import redis
from supabase import Client, create_client

log = logging.getLogger(__name__)

SUPABASE_URL = os.getenv("SUPABASE_URL", "").strip()
SUPABASE_KEY = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY") or "").strip()
REDIS_URL = os.getenv("REDIS_URL", "").strip()
STORE_FILE = Path(os.getenv("FORMGEN_STORE_FILE", "cache/formgen_store.json"))
_REDIS_TIMEOUT = float(os.getenv("REDIS_TIMEOUT", "0.5") or 0.5)

FORM_CONFIG_TABLE = "form_config"
FORM_RESPONSES_TABLE = "form_responses"

Record = Dict[str, Any]


class StorageError(RuntimeError):
    """A backend could not complete the requested operation."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _newest_first(rows: List[Record]) -> List[Record]:
    return sorted(rows, key=lambda r: (r.get("created_at") or "", r.get("id") or 0), reverse=True)


def match_label(rows: List[Record], label: str) -> List[Record]:
    """Rows whose label equals `label`; if none, case-insensitive containment either way."""
    exact = [r for r in rows if r.get("label") == label]
    if exact:
        return exact
    needle = (label or "").lower()
    if not needle:
        return []
    out = []
    for r in rows:
        hay = (r.get("label") or "").lower()
        if hay and (needle in hay or hay in needle):
            out.append(r)
    return out


class _Store:
    name = "store"

    def create_form_config(self, label: str, config: Any, language: str = "en", portal: Optional[str] = None) -> int:
        raise NotImplementedError

    def get_form_config(self, config_id: int) -> Optional[Record]:
        raise NotImplementedError

    def list_form_configs(self) -> List[Record]:
        raise NotImplementedError

    def create_form_response(
        self,
        label: str,
        response: Any,
        language: str = "en",
        portal: Optional[str] = None,
        form_config_id: Optional[int] = None,
    ) -> int:
        raise NotImplementedError

    def list_form_responses(self) -> List[Record]:
        raise NotImplementedError

    def list_form_responses_by_label(self, label: str) -> List[Record]:
        return match_label(self.list_form_responses(), label)


class SupabaseStore(_Store):
    name = "supabase"

    def __init__(self, url: str = SUPABASE_URL, key: str = SUPABASE_KEY, client: Optional[Client] = None):
        self._url = url
        self._key = key
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self._url and self._key)

    def client(self) -> Client:
        if self._client is None:
            if not (self._url and self._key):
                raise StorageError("Supabase is not configured")
            self._client = create_client(self._url, self._key)
        return self._client

    @staticmethod
    def _response_row(row: Record) -> Record:
        out = dict(row)
        if "response_data" in out:
            out["response"] = out.pop("response_data")
        out.setdefault("created_at", _now())
        return out

    def _insert(self, table: str, row: Record) -> int:
        result = self.client().table(table).insert(row).execute()
        if not result.data:
            raise StorageError(f"insert into {table} returned no row")
        return int(result.data[0]["id"])

    def create_form_config(self, label, config, language="en", portal=None):
        return self._insert(FORM_CONFIG_TABLE, {"label": label, "config": config, "language": language, "portal": portal})

    def get_form_config(self, config_id):
        result = self.client().table(FORM_CONFIG_TABLE).select("*").eq("id", config_id).limit(1).execute()
        if not result.data:
            return None
        row = dict(result.data[0])
        row.setdefault("created_at", _now())
        return row

    def list_form_configs(self):
        result = self.client().table(FORM_CONFIG_TABLE).select("*").order("created_at", desc=True).execute()
        return [dict(r, created_at=r.get("created_at") or _now()) for r in (result.data or [])]

    def create_form_response(self, label, response, language="en", portal=None, form_config_id=None):
        row = {
            "label": label,
            "response_data": response,
            "language": language,
            "portal": portal,
            "form_config_id": form_config_id,
        }
        return self._insert(FORM_RESPONSES_TABLE, row)

    def list_form_responses(self):
        result = self.client().table(FORM_RESPONSES_TABLE).select("*").order("created_at", desc=True).execute()
        return [self._response_row(r) for r in (result.data or [])]

    def list_form_responses_by_label(self, label):
        result = self.client().table(FORM_RESPONSES_TABLE).select("*").eq("label", label).execute()
        if result.data:
            return [self._response_row(r) for r in result.data]
        return match_label(self.list_form_responses(), label)


class FileStore(_Store):
    """JSON file holding both tables; writes go through a temp file and replace."""

    name = "file"

    def __init__(self, path: Path = STORE_FILE):
        self._path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {"next_id": {"form_config": 1, "form_responses": 1}, "form_config": [], "form_responses": []}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            raise StorageError(f"unreadable store file {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"store file {self._path} is not an object")
        data.setdefault("next_id", {})
        for table in (FORM_CONFIG_TABLE, FORM_RESPONSES_TABLE):
            data.setdefault(table, [])
            data["next_id"].setdefault(table, len(data[table]) + 1)
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, separators=(",", ":")), encoding="utf-8")
        tmp.replace(self._path)

    def _append(self, table: str, row: Record) -> int:
        with self._lock:
            data = self._read()
            new_id = int(data["next_id"][table])
            data["next_id"][table] = new_id + 1
            data[table].append(dict(row, id=new_id, created_at=_now()))
            self._write(data)
            return new_id

    def _rows(self, table: str) -> List[Record]:
        with self._lock:
            return list(self._read()[table])

    def create_form_config(self, label, config, language="en", portal=None):
        return self._append(FORM_CONFIG_TABLE, {"label": label, "config": config, "language": language, "portal": portal})

    def get_form_config(self, config_id):
        for row in self._rows(FORM_CONFIG_TABLE):
            if row.get("id") == config_id:
                return row
        return None

    def list_form_configs(self):
        return _newest_first(self._rows(FORM_CONFIG_TABLE))

    def create_form_response(self, label, response, language="en", portal=None, form_config_id=None):
        row = {
            "label": label,
            "response": response,
            "language": language,
            "portal": portal,
            "form_config_id": form_config_id,
        }
        return self._append(FORM_RESPONSES_TABLE, row)

    def list_form_responses(self):
        return _newest_first(self._rows(FORM_RESPONSES_TABLE))


class RedisStore(_Store):
    """Rows as JSON strings in one hash per table; ids from INCR counters."""

    name = "redis"

    def __init__(self, url: str = REDIS_URL, prefix: str = "formgen", client: Optional["redis.Redis"] = None):
        self._prefix = prefix
        self._client = client or redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=_REDIS_TIMEOUT,
            socket_connect_timeout=_REDIS_TIMEOUT,
        )

    def _key(self, *parts: str) -> str:
        return ":".join((self._prefix,) + parts)

    def _append(self, table: str, row: Record) -> int:
        new_id = int(self._client.incr(self._key(table, "seq")))
        self._client.hset(self._key(table), str(new_id), json.dumps(dict(row, id=new_id, created_at=_now())))
        return new_id

    def _rows(self, table: str) -> List[Record]:
        raw = self._client.hgetall(self._key(table)) or {}
        return [json.loads(v) for v in raw.values()]

    def create_form_config(self, label, config, language="en", portal=None):
        return self._append(FORM_CONFIG_TABLE, {"label": label, "config": config, "language": language, "portal": portal})

    def get_form_config(self, config_id):
        raw = self._client.hget(self._key(FORM_CONFIG_TABLE), str(config_id))
        return json.loads(raw) if raw else None

    def list_form_configs(self):
        return _newest_first(self._rows(FORM_CONFIG_TABLE))

    def create_form_response(self, label, response, language="en", portal=None, form_config_id=None):
        row = {
            "label": label,
            "response": response,
            "language": language,
            "portal": portal,
            "form_config_id": form_config_id,
        }
        return self._append(FORM_RESPONSES_TABLE, row)

    def list_form_responses(self):
        return _newest_first(self._rows(FORM_RESPONSES_TABLE))


class FallbackRepository:
    """Try the primary store; on any failure log it and ask the secondary.

    `get_form_config` also consults the secondary when the primary has no such
    row. Secondary failures propagate to the caller.
    """

    def __init__(self, primary: Optional[_Store], secondary: _Store):
        self.primary = primary
        self.secondary = secondary

    def _call(self, op: str, fn: Callable[[_Store], Any], miss: Callable[[Any], bool] = lambda r: False) -> Tuple[Any, str]:
        if self.primary is not None:
            try:
                result = fn(self.primary)
            except Exception as exc:
                log.warning("storage.fallback: %s failed on %s: %r; trying %s", op, self.primary.name, exc, self.secondary.name)
            else:
                if not miss(result):
                    return result, self.primary.name
        return fn(self.secondary), self.secondary.name

    def create_form_config(self, label: str, config: Any, language: str = "en", portal: Optional[str] = None) -> Tuple[int, str]:
        return self._call("create_form_config", lambda s: s.create_form_config(label, config, language, portal))

    def get_form_config(self, config_id: int) -> Tuple[Optional[Record], str]:
        return self._call("get_form_config", lambda s: s.get_form_config(config_id), miss=lambda r: r is None)

    def list_form_configs(self) -> Tuple[List[Record], str]:
        return self._call("list_form_configs", lambda s: s.list_form_configs())

    def create_form_response(
        self,
        label: str,
        response: Any,
        language: str = "en",
        portal: Optional[str] = None,
        form_config_id: Optional[int] = None,
    ) -> Tuple[int, str]:
        return self._call(
            "create_form_response",
            lambda s: s.create_form_response(label, response, language, portal, form_config_id),
        )

    def list_form_responses(self) -> Tuple[List[Record], str]:
        return self._call("list_form_responses", lambda s: s.list_form_responses())

    def list_form_responses_by_label(self, label: str) -> Tuple[List[Record], str]:
        return self._call("list_form_responses_by_label", lambda s: s.list_form_responses_by_label(label))

    # short names used by the pipeline's callers
    save = create_form_config
    get = get_form_config
    list = list_form_configs
    list_by_label = list_form_responses_by_label


_REPOSITORY: Optional[FallbackRepository] = None
_REPO_LOCK = threading.Lock()


def build_repository() -> FallbackRepository:
    supa = SupabaseStore()
    primary = supa if supa.configured else None
    secondary: _Store = RedisStore(REDIS_URL) if REDIS_URL else FileStore(STORE_FILE)
    log.info(
        "storage.init: primary=%s secondary=%s",
        primary.name if primary else None,
        secondary.name,
    )
    return FallbackRepository(primary, secondary)


def get_repository() -> FallbackRepository:
    global _REPOSITORY
    with _REPO_LOCK:
        if _REPOSITORY is None:
            _REPOSITORY = build_repository()
        return _REPOSITORY


def set_repository(repo: Optional[FallbackRepository]) -> None:
    """Replace the process-wide repository (None resets to lazy construction)."""
    global _REPOSITORY
    with _REPO_LOCK:
        _REPOSITORY = repo
