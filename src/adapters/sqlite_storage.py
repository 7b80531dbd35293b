"""SQLite storage adapter.

Implements the tenant store and subscriber registry ports using a simple
SQLite database.
"""

from __future__ import annotations

import sqlite3
import threading
from datetime import date, datetime, timezone
from typing import List, Optional

from core.errors import RegistryWriteError
from core.models import Tenant, TenantReadError, TenantSnapshot


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the tenant and subscriber ports."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        # Serializes registry writes against registry reads.
        self._subscribers_lock = threading.Lock()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - tenants: one row per tenant with its rent due date
        - subscribers: distinct delivery addresses for reminders
        """

        with self._connect() as conn:
            # payment_date is ISO text (YYYY-MM-DD); rows that fail to parse
            # are reported by list_tenants instead of breaking the read.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tenants (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    apartment TEXT NOT NULL,
                    payment_date TEXT NOT NULL
                )
                """
            )
            # address is a Telegram chat id or @username kept as text.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS subscribers (
                    address TEXT PRIMARY KEY,
                    subscribed_at TIMESTAMP NOT NULL
                )
                """
            )

    @staticmethod
    def _row_to_tenant(row: sqlite3.Row) -> Tenant:
        return Tenant(
            tenant_id=int(row["id"]),
            name=row["name"],
            unit=row["apartment"],
            due_date=date.fromisoformat(str(row["payment_date"])),
        )

    def list_tenants(self) -> TenantSnapshot:
        """Return every well-formed tenant plus one error per malformed row."""

        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, name, apartment, payment_date FROM tenants ORDER BY id"
            ).fetchall()

        tenants: List[Tenant] = []
        errors: List[TenantReadError] = []
        for row in rows:
            try:
                tenants.append(self._row_to_tenant(row))
            except (TypeError, ValueError) as exc:
                errors.append(
                    TenantReadError(
                        tenant_id=row["id"],
                        raw_value=str(row["payment_date"]),
                        detail=str(exc),
                    )
                )
        return TenantSnapshot(tenants=tenants, errors=errors)

    def get_tenant(self, tenant_id: int) -> Optional[Tenant]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, name, apartment, payment_date FROM tenants WHERE id = ?",
                (tenant_id,),
            ).fetchone()
        return self._row_to_tenant(row) if row else None

    def add_tenant(self, name: str, unit: str, due_date: date) -> Tenant:
        """Insert a tenant and return it with its assigned id."""

        # Validate before touching the database.
        Tenant(tenant_id=0, name=name, unit=unit, due_date=due_date)
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO tenants (name, apartment, payment_date) VALUES (?, ?, ?)",
                (name, unit, due_date.isoformat()),
            )
            tenant_id = int(cur.lastrowid)
        return Tenant(tenant_id=tenant_id, name=name, unit=unit, due_date=due_date)

    def update_tenant(
        self,
        tenant_id: int,
        name: Optional[str] = None,
        unit: Optional[str] = None,
        due_date: Optional[date] = None,
    ) -> Optional[Tenant]:
        """Update the given fields; return the new record or None if missing.

        Stored columns are only decoded when they are kept, so a row that
        list_tenants reports as unreadable can be repaired here.
        """

        with self._connect() as conn:
            row = conn.execute(
                "SELECT name, apartment, payment_date FROM tenants WHERE id = ?",
                (tenant_id,),
            ).fetchone()
        if row is None:
            return None
        updated = Tenant(
            tenant_id=tenant_id,
            name=row["name"] if name is None else name,
            unit=row["apartment"] if unit is None else unit,
            due_date=date.fromisoformat(str(row["payment_date"])) if due_date is None else due_date,
        )
        with self._connect() as conn:
            conn.execute(
                "UPDATE tenants SET name = ?, apartment = ?, payment_date = ? WHERE id = ?",
                (updated.name, updated.unit, updated.due_date.isoformat(), tenant_id),
            )
        return updated

    def delete_tenant(self, tenant_id: int) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM tenants WHERE id = ?", (tenant_id,))
            return cur.rowcount > 0

    def register(self, address: str) -> bool:
        """Insert a subscriber address; return True if it was not present yet."""

        now = datetime.now(timezone.utc)
        with self._subscribers_lock:
            try:
                with self._connect() as conn:
                    cur = conn.execute(
                        """
                        INSERT OR IGNORE INTO subscribers (address, subscribed_at)
                        VALUES (?, ?)
                        """,
                        (str(address), now.isoformat()),
                    )
                    return cur.rowcount == 1
            except sqlite3.Error as exc:
                raise RegistryWriteError(f"Failed to register {address}: {exc}") from exc

    def list_all(self) -> List[str]:
        """Return all subscriber addresses."""

        with self._subscribers_lock:
            with self._connect() as conn:
                rows = conn.execute("SELECT address FROM subscribers ORDER BY address").fetchall()
        return [row["address"] for row in rows]
