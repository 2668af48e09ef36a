from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..core.exceptions import ConflictError, StorageError, ValidationError
from .connection import DatabaseConnection

# Column lists reported by SQLite in "UNIQUE constraint failed: ..." messages.
_UNIQUE_MESSAGES = {
    "members.seat_no": "Seat is already assigned to another active member",
    "members.qr_code": "QR code is already assigned to another member",
    "attendance.member_id, attendance.check_in_date": "Already checked in today",
    "payments.receipt_number": "Receipt number already exists",
    "settings.key": "Setting already exists",
}


def translate_integrity_error(error: sqlite3.IntegrityError) -> Exception:
    """Map a constraint failure onto the domain error taxonomy."""

    text = str(error)
    if text.startswith("UNIQUE constraint failed"):
        columns = text.split(":", 1)[1].strip() if ":" in text else ""
        return ConflictError(_UNIQUE_MESSAGES.get(columns, f"Duplicate value ({columns})"))
    if text.startswith("CHECK constraint failed"):
        return ValidationError(f"Invalid value rejected by the store ({text})")
    if text.startswith("FOREIGN KEY constraint failed"):
        return ConflictError("Record is referenced by other records or references a missing record")
    if text.startswith("NOT NULL constraint failed"):
        return ValidationError(f"Missing required value ({text.split(':', 1)[-1].strip()})")
    return ConflictError(text)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, immediate: bool = False) -> Iterator[Tuple[sqlite3.Connection, sqlite3.Cursor]]:
    """Run one transaction on a fresh connection.

    ``immediate=True`` takes the write lock at BEGIN, so a read-modify-write
    sequence cannot interleave with another writer.
    """

    conn = conn_factory.connect()
    try:
        cur = conn.cursor()
        try:
            cur.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except sqlite3.IntegrityError as e:
        conn.rollback()
        raise translate_integrity_error(e) from e
    except sqlite3.Error as e:
        conn.rollback()
        raise StorageError(f"Ledger store error: {e}") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur: sqlite3.Cursor) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return dict(row) if row else None


def fetchall(cur: sqlite3.Cursor) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return [dict(r) for r in rows or []]
