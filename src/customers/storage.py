"""SQLite storage for customer profiles, with JSON columns for fields and additional data."""

import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, Field

from db import dump_json, load_json, wal_connect
from shared_types import NoteSource

from .errors import CustomerNotFoundError
from .fields import FieldRegistry, registry
from .sections import PROFILE_SECTIONS, profile_completeness, section_completeness

logger = structlog.get_logger()


class Customer(BaseModel):
    id: str
    fields: dict[str, Any] = Field(default_factory=dict)
    additional_data: list[dict] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def full_name(self) -> str:
        return self.fields.get("full_name") or ""

    def completeness(self) -> dict[str, int]:
        """Section id -> completeness percentage."""
        return {
            s.id: section_completeness(self.fields, s).percentage for s in PROFILE_SECTIONS
        }

    def summary(self) -> str:
        """Short profile summary for LLM context."""
        parts = [f"Name: {self.full_name or 'Unknown'}"]
        for key in ("occupation_type", "city_of_residence", "risk_bucket", "goals_summary"):
            value = self.fields.get(key)
            if value:
                label = registry.get(key).label
                parts.append(f"{label}: {str(value)[:200]}")
        parts.append(f"Profile completeness: {profile_completeness(self.fields).percentage}%")
        return "\n".join(parts)


class NoteInput(BaseModel):
    content: str
    source: NoteSource = NoteSource.MEETING
    tags: list[str] = Field(default_factory=list)
    raw_input: str = ""
    traceability: dict = Field(default_factory=dict)


class Note(NoteInput):
    id: str
    customer_id: str
    created_at: str


class ProfileStore:
    """SQLite persistence for customer profiles and RM notes."""

    def __init__(self, db_path: str | Path, field_registry: FieldRegistry | None = None):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.registry = field_registry or registry
        self._init_db()

    def _init_db(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS customers (
                    id TEXT PRIMARY KEY,
                    fields TEXT NOT NULL DEFAULT '{}',
                    additional_data TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS customer_notes (
                    id TEXT PRIMARY KEY,
                    customer_id TEXT NOT NULL REFERENCES customers(id) ON DELETE CASCADE,
                    content TEXT NOT NULL,
                    source TEXT NOT NULL,
                    tags TEXT NOT NULL DEFAULT '[]',
                    raw_input TEXT NOT NULL DEFAULT '',
                    traceability TEXT NOT NULL DEFAULT '{}',
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_notes_customer
                ON customer_notes(customer_id, created_at)
            """)

    @staticmethod
    def _row_to_customer(row) -> Customer:
        return Customer(
            id=row["id"],
            fields=load_json(row["fields"], {}),
            additional_data=load_json(row["additional_data"], []),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_customer(self, customer_id: str) -> Customer | None:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM customers WHERE id = ?", (customer_id,)).fetchone()
        return self._row_to_customer(row) if row else None

    def require_customer(self, customer_id: str) -> Customer:
        customer = self.get_customer(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    def create_customer(self, full_name: str, fields: dict | None = None) -> Customer:
        values = dict(fields or {})
        values["full_name"] = full_name
        self._check_keys(values)
        customer_id = uuid.uuid4().hex[:16]
        now = datetime.now().isoformat()
        with wal_connect(self.db_path) as conn:
            conn.execute(
                "INSERT INTO customers (id, fields, additional_data, created_at, updated_at)"
                " VALUES (?, ?, '[]', ?, ?)",
                (customer_id, dump_json(values), now, now),
            )
        logger.info("customer.created", customer_id=customer_id)
        return self.require_customer(customer_id)

    def list_customers(self) -> list[Customer]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute("SELECT * FROM customers ORDER BY created_at").fetchall()
        return [self._row_to_customer(r) for r in rows]

    def delete_customer(self, customer_id: str) -> bool:
        with wal_connect(self.db_path) as conn:
            cur = conn.execute("DELETE FROM customers WHERE id = ?", (customer_id,))
        return cur.rowcount > 0

    def _check_keys(self, values: dict):
        unknown = [k for k in values if k not in self.registry]
        if unknown:
            raise ValueError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

    def update_fields(self, customer_id: str, updates: dict[str, Any]) -> Customer | None:
        """Write every update in one statement. Returns None if the customer is gone."""
        self._check_keys(updates)
        customer = self.get_customer(customer_id)
        if customer is None:
            return None
        merged = {**customer.fields, **updates}
        with wal_connect(self.db_path) as conn:
            conn.execute(
                "UPDATE customers SET fields = ?, updated_at = ? WHERE id = ?",
                (dump_json(merged), datetime.now().isoformat(), customer_id),
            )
        logger.info("customer.fields_updated", customer_id=customer_id, count=len(updates))
        return self.get_customer(customer_id)

    def append_additional_data(self, customer_id: str, items: list[dict]) -> Customer:
        """Merge items by key; an incoming item replaces an existing one with the same key."""
        customer = self.require_customer(customer_id)
        incoming = {item["key"]: item for item in items}
        kept = [d for d in customer.additional_data if d.get("key") not in incoming]
        merged = kept + list(incoming.values())
        with wal_connect(self.db_path) as conn:
            conn.execute(
                "UPDATE customers SET additional_data = ?, updated_at = ? WHERE id = ?",
                (dump_json(merged), datetime.now().isoformat(), customer_id),
            )
        return self.require_customer(customer_id)

    def add_note(self, customer_id: str, note: NoteInput) -> Note:
        self.require_customer(customer_id)
        created = Note(
            id=uuid.uuid4().hex[:16],
            customer_id=customer_id,
            created_at=datetime.now().isoformat(),
            **note.model_dump(),
        )
        with wal_connect(self.db_path) as conn:
            conn.execute(
                """INSERT INTO customer_notes
                   (id, customer_id, content, source, tags, raw_input, traceability, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    created.id,
                    customer_id,
                    created.content,
                    created.source.value,
                    dump_json(created.tags),
                    created.raw_input,
                    dump_json(created.traceability),
                    created.created_at,
                ),
            )
        return created

    def list_notes(self, customer_id: str, limit: int = 50) -> list[Note]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                "SELECT * FROM customer_notes WHERE customer_id = ?"
                " ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (customer_id, limit),
            ).fetchall()
        return [
            Note(
                id=r["id"],
                customer_id=r["customer_id"],
                content=r["content"],
                source=NoteSource(r["source"]),
                tags=load_json(r["tags"], []),
                raw_input=r["raw_input"],
                traceability=load_json(r["traceability"], {}),
                created_at=r["created_at"],
            )
            for r in rows
        ]
