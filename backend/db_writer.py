#Save records live in one sqlite table; the record service and the sqlite store both go through here.

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

#Function init_db: sets up the database and table
def init_db(db_path):

    conn = sqlite3.connect(db_path)
    c = conn.cursor()
    c.execute("""
        CREATE TABLE IF NOT EXISTS game_data (
            id TEXT PRIMARY KEY,
            user_id TEXT,
            payload TEXT NOT NULL,
            last_saved TEXT NOT NULL
        )
    """)
    conn.commit()
    conn.close()

def _row_to_record(row) -> Dict[str, object]:
    record = json.loads(row[2])
    record["_id"] = row[0]
    return record

def list_records(db_path) -> List[Dict[str, object]]:
    """All records, most recently saved first."""
    conn = sqlite3.connect(db_path)
    try:
        c = conn.cursor()
        c.execute("SELECT id, user_id, payload, last_saved FROM game_data ORDER BY last_saved DESC")
        return [_row_to_record(row) for row in c.fetchall()]
    finally:
        conn.close()

def insert_record(db_path, record) -> Dict[str, object]:
    record_id = uuid.uuid4().hex
    payload = {k: v for k, v in record.items() if k != "_id"}
    last_saved = payload.get("lastSaved") or datetime.now(timezone.utc).isoformat()
    conn = sqlite3.connect(db_path)
    try:
        c = conn.cursor()
        c.execute("""
            INSERT INTO game_data (id, user_id, payload, last_saved)
            VALUES (?, ?, ?, ?)
        """, (record_id, payload.get("userId"), json.dumps(payload), last_saved))
        conn.commit()
    finally:
        conn.close()
    payload["_id"] = record_id
    return payload

def update_record(db_path, record_id, record) -> Optional[Dict[str, object]]:
    """Overwrite a record; None when the id is unknown."""
    payload = {k: v for k, v in record.items() if k != "_id"}
    last_saved = payload.get("lastSaved") or datetime.now(timezone.utc).isoformat()
    conn = sqlite3.connect(db_path)
    try:
        c = conn.cursor()
        c.execute("""
            UPDATE game_data SET user_id = ?, payload = ?, last_saved = ?
            WHERE id = ?
        """, (payload.get("userId"), json.dumps(payload), last_saved, record_id))
        conn.commit()
        if c.rowcount == 0:
            return None
    finally:
        conn.close()
    payload["_id"] = record_id
    return payload
