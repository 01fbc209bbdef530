"""
Persistence Synchronizer

Loads the initial GameState from a record store and flushes the current
state back on every save tick. The store contract is three async calls
(list, create, update) answering with a success flag and data.

Durability is eventual: failed saves are logged and the next save tick
tries again with whatever the state is by then.
"""

import asyncio
import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

import httpx

import db_writer
from config import CONFIG, EconomyConfig, PersistenceConfig
from game_state import GameState, default_state

logger = logging.getLogger(__name__)


@dataclass
class StoreResponse:
    success: bool
    data: Any = None


class RecordStore(Protocol):
    async def list(self) -> StoreResponse:
        ...

    async def create(self, record: Dict[str, Any]) -> StoreResponse:
        ...

    async def update(self, record_id: str, record: Dict[str, Any]) -> StoreResponse:
        ...


class InMemoryRecordStore:
    """Process-local store; newest record is listed first."""

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None):
        self.records: List[Dict[str, Any]] = [copy.deepcopy(r) for r in (records or [])]
        self._next_id = 1

    async def list(self) -> StoreResponse:
        return StoreResponse(success=True, data=[copy.deepcopy(r) for r in self.records])

    async def create(self, record: Dict[str, Any]) -> StoreResponse:
        stored = copy.deepcopy(record)
        stored["_id"] = f"mem-{self._next_id}"
        self._next_id += 1
        self.records.insert(0, stored)
        return StoreResponse(success=True, data=copy.deepcopy(stored))

    async def update(self, record_id: str, record: Dict[str, Any]) -> StoreResponse:
        for i, existing in enumerate(self.records):
            if existing.get("_id") == record_id:
                stored = copy.deepcopy(record)
                stored["_id"] = record_id
                # Most recently saved moves to the front
                self.records.pop(i)
                self.records.insert(0, stored)
                return StoreResponse(success=True, data=copy.deepcopy(stored))
        return StoreResponse(success=False)


class SqliteRecordStore:
    """sqlite-backed store; blocking calls run in a worker thread."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        db_writer.init_db(db_path)

    async def list(self) -> StoreResponse:
        records = await asyncio.to_thread(db_writer.list_records, self.db_path)
        return StoreResponse(success=True, data=records)

    async def create(self, record: Dict[str, Any]) -> StoreResponse:
        stored = await asyncio.to_thread(db_writer.insert_record, self.db_path, record)
        return StoreResponse(success=True, data=stored)

    async def update(self, record_id: str, record: Dict[str, Any]) -> StoreResponse:
        stored = await asyncio.to_thread(db_writer.update_record, self.db_path, record_id, record)
        return StoreResponse(success=stored is not None, data=stored)


class HttpRecordStore:
    """Client for the record service in record_api.py."""

    def __init__(self, base_url: str, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def _send(self, method: str, path: str, payload: Optional[dict] = None) -> StoreResponse:
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
            r = await client.request(method, path, json=payload)
            if r.status_code == 404:
                return StoreResponse(success=False)
            r.raise_for_status()
            body = r.json()
            return StoreResponse(success=bool(body.get("success")), data=body.get("data"))

    async def list(self) -> StoreResponse:
        return await self._send("GET", "/api/game_data")

    async def create(self, record: Dict[str, Any]) -> StoreResponse:
        return await self._send("POST", "/api/game_data", record)

    async def update(self, record_id: str, record: Dict[str, Any]) -> StoreResponse:
        return await self._send("PUT", f"/api/game_data/{record_id}", record)


def create_store(config: PersistenceConfig = None) -> RecordStore:
    """Instantiate the record store selected by configuration."""
    if config is None:
        config = CONFIG.persistence
    if config.backend == "memory":
        return InMemoryRecordStore()
    if config.backend == "http":
        return HttpRecordStore(config.service_url, timeout=config.http_timeout)
    return SqliteRecordStore(config.sqlite_path)


class PersistenceSynchronizer:
    """
    Keeps one save record in step with the in-memory state.

    Only one save runs at a time; a save requested while another is in
    flight is skipped rather than queued behind it.
    """

    def __init__(self, store: RecordStore, user_id: str = None, economy_config: EconomyConfig = None):
        self.store = store
        self.user_id = user_id or CONFIG.persistence.user_id
        self.economy_config = economy_config or CONFIG.economy
        self.record_id: Optional[str] = None
        self.last_saved: Optional[str] = None
        self._save_lock = asyncio.Lock()

    @property
    def save_in_flight(self) -> bool:
        return self._save_lock.locked()

    async def load(self) -> GameState:
        """Fetch the first listed record, or start from defaults."""
        try:
            response = await self.store.list()
        except Exception as e:
            logger.error(f"Failed to load game: {e}")
            return default_state(config=self.economy_config)

        if not response.success:
            logger.error("Failed to load game: store reported failure")
            return default_state(config=self.economy_config)

        records = response.data if isinstance(response.data, list) else []
        if not records:
            logger.info("No saved game found, starting fresh")
            return default_state(config=self.economy_config)

        saved = records[0]
        if not isinstance(saved, dict):
            logger.error(f"Failed to load game: malformed record {saved!r}")
            return default_state(config=self.economy_config)

        self.record_id = saved.get("_id")
        self.last_saved = saved.get("lastSaved")
        logger.info(f"Loaded save {self.record_id} (last saved {self.last_saved})")
        return default_state(saved, self.economy_config)

    def build_record(self, state: GameState) -> Dict[str, Any]:
        record = {"userId": self.user_id}
        record.update(state.to_record())
        record["lastSaved"] = datetime.now(timezone.utc).isoformat()
        return record

    async def save(self, state: GameState) -> bool:
        """
        Flush `state` to the store.

        Returns:
            True when the store acknowledged the write
        """
        if self._save_lock.locked():
            logger.debug("Save already in flight, skipping this tick")
            return False

        async with self._save_lock:
            # Snapshot before suspending so the record is internally consistent
            record = self.build_record(state)
            try:
                if self.record_id is None:
                    response = await self.store.create(record)
                    if response.success and isinstance(response.data, dict) and response.data.get("_id"):
                        self.record_id = response.data["_id"]
                    else:
                        logger.error("Failed to save game: create was not acknowledged")
                        return False
                else:
                    response = await self.store.update(self.record_id, record)
                    if not response.success:
                        logger.error(f"Failed to save game: update of {self.record_id} was not acknowledged")
                        return False
            except Exception as e:
                logger.error(f"Failed to save game: {e}")
                return False

            self.last_saved = record["lastSaved"]
            return True
