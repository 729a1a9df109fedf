from typing import Any, Dict, List, Optional
from uuid import uuid4
from datetime import datetime, timezone
import os
import threading
import logging

# Lightweight adapter over Supabase client. Keep an in-memory fallback when SUPABASE_URL is missing.
from supabase import create_client, Client

from .constants import SETTINGS_ID, STATUS_INCOMING
from .errors import StoreUnavailable

logger = logging.getLogger(__name__)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryDB:
    def __init__(self) -> None:
        self.settings: Optional[Dict[str, Any]] = None
        self.sessions: Dict[str, Dict[str, Any]] = {}
        # Guards read-merge-write on settings and compare-and-set on session status
        self._lock = threading.Lock()

    # Settings
    def get_settings(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            return dict(self.settings) if self.settings else None

    def upsert_settings(self, patch: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            if self.settings is None:
                obj = {"id": SETTINGS_ID, **defaults, "created_at": utcnow_iso()}
            else:
                obj = dict(self.settings)
            for k, v in (patch or {}).items():
                obj[k] = v
            obj["updated_at"] = utcnow_iso()
            self.settings = obj
            return dict(obj)

    # Sessions
    def create_session(self, caller: str, ringtone_url: Optional[str]) -> Dict[str, Any]:
        sid = str(uuid4())
        obj = {
            "id": sid,
            "caller": caller,
            "status": STATUS_INCOMING,
            "start_time": utcnow_iso(),
            "ended_time": None,
            "ringtone_url": ringtone_url,
        }
        with self._lock:
            self.sessions[sid] = obj
        return dict(obj)

    def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            obj = self.sessions.get(str(session_id))
            return dict(obj) if obj else None

    def list_sessions(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._lock:
            items = [dict(s) for s in self.sessions.values()]
        if status:
            items = [s for s in items if s.get("status") == status]
        return sorted(items, key=lambda s: s["start_time"], reverse=True)

    def update_session(self, session_id: str, expected_status: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Apply patch only if the session still has expected_status. Returns None otherwise."""
        with self._lock:
            obj = self.sessions.get(str(session_id))
            if not obj or obj.get("status") != expected_status:
                return None
            obj.update(patch)
            return dict(obj)


class SupabaseDB:
    def __init__(self, client: Client) -> None:
        self.client = client

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except Exception as e:
            logger.error(f"Supabase {action} failed: {e}")
            raise StoreUnavailable(f"Could not {action}") from e

    # Settings
    def get_settings(self) -> Optional[Dict[str, Any]]:
        res = self._execute(
            self.client.table("settings").select("*").eq("id", SETTINGS_ID).limit(1),
            "load settings",
        )
        return (res.data or [None])[0]

    def upsert_settings(self, patch: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
        # Columns missing from the row take their table defaults on insert and are
        # left untouched on conflict, so this one statement is the merge.
        row = {"id": SETTINGS_ID, **(patch or {}), "updated_at": utcnow_iso()}
        res = self._execute(
            self.client.table("settings").upsert(row, on_conflict="id"),
            "save settings",
        )
        data = (res.data or [None])[0]
        if data is None:
            raise StoreUnavailable("Settings upsert returned no row")
        return {**defaults, **data}

    # Sessions
    def create_session(self, caller: str, ringtone_url: Optional[str]) -> Dict[str, Any]:
        row = {
            "id": str(uuid4()),
            "caller": caller,
            "status": STATUS_INCOMING,
            "start_time": utcnow_iso(),
            "ringtone_url": ringtone_url,
        }
        res = self._execute(self.client.table("sessions").insert(row), "create session")
        data = (res.data or [None])[0]
        if data is None:
            raise StoreUnavailable("Session insert returned no row")
        return data

    def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        res = self._execute(
            self.client.table("sessions").select("*").eq("id", str(session_id)).limit(1),
            "load session",
        )
        return (res.data or [None])[0]

    def list_sessions(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        query = self.client.table("sessions").select("*")
        if status:
            query = query.eq("status", status)
        res = self._execute(query.order("start_time", desc=True), "list sessions")
        return res.data or []

    def update_session(self, session_id: str, expected_status: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        # The status filter makes the update conditional: a concurrent writer that
        # already moved the row leaves nothing to match.
        res = self._execute(
            self.client.table("sessions").update(patch).eq("id", str(session_id)).eq("status", expected_status),
            "update session",
        )
        return (res.data or [None])[0]


_client: Optional[Client] = None
_db_instance: Optional[Any] = None


def get_db():
    global _client, _db_instance

    # Ensure environment variables are loaded
    from dotenv import load_dotenv
    load_dotenv()

    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if url and key:
        if _client is None:
            _client = create_client(url, key)
        if _db_instance is None or not isinstance(_db_instance, SupabaseDB):
            _db_instance = SupabaseDB(_client)
        return _db_instance
    if _db_instance is None or not isinstance(_db_instance, InMemoryDB):
        _db_instance = InMemoryDB()
    return _db_instance


def get_supabase_client() -> Optional[Client]:
    """The shared Supabase client, or None when running on the in-memory store."""
    db = get_db()
    return db.client if isinstance(db, SupabaseDB) else None
