"""Confirmed personal and financial interests, with an audit trail."""

import sqlite3
import uuid
from datetime import datetime
from pathlib import Path

import structlog
from pydantic import Field

from db import dump_json, load_json, wal_connect
from shared_types import ArtifactStatus, ArtifactType, InterestCategory, InterestSourceType, InterestStatus

from .artifacts import ArtifactStore
from .errors import ArtifactNotFoundError, ArtifactTransitionError
from .models import InterestEdit, WireModel

logger = structlog.get_logger()


class Interest(WireModel):
    id: str
    customer_id: str
    category: InterestCategory
    label: str
    description: str | None = None
    status: InterestStatus = InterestStatus.ACTIVE
    source_type: InterestSourceType = InterestSourceType.MANUAL
    source_artifact_id: str | None = None
    created_by_id: str | None = None
    created_at: str
    updated_at: str


class InterestAuditEntry(WireModel):
    id: str
    interest_id: str
    action: str  # created | confirmed | edited | archived
    actor_id: str | None = None
    changes: dict = Field(default_factory=dict)
    created_at: str


class InterestStore:
    """SQLite persistence for interests.

    Interests created from an artifact are keyed by that artifact id, so
    confirming the same artifact twice yields one interest.
    """

    def __init__(self, db_path: str | Path, artifacts: ArtifactStore):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.artifacts = artifacts
        self._init_db()

    def _init_db(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS interests (
                    id TEXT PRIMARY KEY,
                    customer_id TEXT NOT NULL,
                    category TEXT NOT NULL,
                    label TEXT NOT NULL,
                    description TEXT,
                    status TEXT NOT NULL DEFAULT 'active',
                    source_type TEXT NOT NULL,
                    source_artifact_id TEXT UNIQUE,
                    created_by_id TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS interest_audit (
                    id TEXT PRIMARY KEY,
                    interest_id TEXT NOT NULL REFERENCES interests(id),
                    action TEXT NOT NULL,
                    actor_id TEXT,
                    changes TEXT NOT NULL DEFAULT '{}',
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_interests_customer
                ON interests(customer_id, status)
            """)

    @staticmethod
    def _row_to_interest(row) -> Interest:
        return Interest(**dict(row))

    def get(self, interest_id: str) -> Interest | None:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM interests WHERE id = ?", (interest_id,)).fetchone()
        return self._row_to_interest(row) if row else None

    def get_by_artifact(self, artifact_id: str) -> Interest | None:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute(
                "SELECT * FROM interests WHERE source_artifact_id = ?", (artifact_id,)
            ).fetchone()
        return self._row_to_interest(row) if row else None

    def list_by_customer(self, customer_id: str, include_archived: bool = False) -> list[Interest]:
        query = "SELECT * FROM interests WHERE customer_id = ?"
        if not include_archived:
            query += " AND status = 'active'"
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(query + " ORDER BY created_at, rowid", (customer_id,)).fetchall()
        return [self._row_to_interest(r) for r in rows]

    def _audit(self, conn, interest_id: str, action: str, actor_id: str | None, changes: dict):
        conn.execute(
            """INSERT INTO interest_audit (id, interest_id, action, actor_id, changes, created_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                uuid.uuid4().hex[:16],
                interest_id,
                action,
                actor_id,
                dump_json(changes),
                datetime.now().isoformat(),
            ),
        )

    def _insert(
        self,
        customer_id: str,
        category: InterestCategory,
        label: str,
        description: str | None,
        source_type: InterestSourceType,
        actor_id: str | None,
        source_artifact_id: str | None = None,
        audit_action: str = "created",
    ) -> Interest:
        interest_id = uuid.uuid4().hex[:16]
        now = datetime.now().isoformat()
        with wal_connect(self.db_path) as conn:
            conn.execute(
                """INSERT INTO interests
                   (id, customer_id, category, label, description, status, source_type,
                    source_artifact_id, created_by_id, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, 'active', ?, ?, ?, ?, ?)""",
                (
                    interest_id,
                    customer_id,
                    str(category),
                    label,
                    description,
                    str(source_type),
                    source_artifact_id,
                    actor_id,
                    now,
                    now,
                ),
            )
            self._audit(
                conn,
                interest_id,
                audit_action,
                actor_id,
                {"label": label, "description": description, "artifact_id": source_artifact_id},
            )
        return self.get(interest_id)

    def create_from_artifact(
        self, artifact_id: str, actor_id: str | None = None, edits: InterestEdit | None = None
    ) -> Interest:
        """Confirm an interest proposal artifact into an active interest.

        RM edits win over edits already stored on the artifact, which win
        over the original suggestion. Calling this again for the same
        artifact returns the existing interest.
        A rejected artifact cannot be confirmed.
        """
        existing = self.get_by_artifact(artifact_id)
        if existing is not None:
            logger.info("interest.already_confirmed", artifact_id=artifact_id, interest_id=existing.id)
            return existing

        artifact = self.artifacts.get(artifact_id)
        if artifact is None:
            raise ArtifactNotFoundError(artifact_id)
        if artifact.artifact_type != ArtifactType.INTEREST_PROPOSAL:
            raise ValueError(f"Artifact {artifact_id} is not an interest proposal")
        if artifact.status == ArtifactStatus.REJECTED:
            raise ArtifactTransitionError(artifact_id, artifact.status.value, ArtifactStatus.ACCEPTED.value)

        edits = edits or InterestEdit()
        p = artifact.payload
        label = edits.label or p.get("edited_label") or p["label"]
        description = edits.description or p.get("edited_description") or p.get("description")

        try:
            interest = self._insert(
                customer_id=artifact.customer_id,
                category=InterestCategory(p["category"]),
                label=label,
                description=description,
                source_type=InterestSourceType.SYSTEM_SUGGESTED,
                actor_id=actor_id,
                source_artifact_id=artifact_id,
                audit_action="confirmed",
            )
        except sqlite3.IntegrityError:
            # Lost a race with a concurrent confirm of the same artifact
            interest = self.get_by_artifact(artifact_id)
            if interest is None:
                raise

        logger.info("interest.confirmed", interest_id=interest.id, artifact_id=artifact_id)
        return interest

    def create_manual(
        self,
        customer_id: str,
        category: InterestCategory,
        label: str,
        description: str | None = None,
        actor_id: str | None = None,
    ) -> Interest:
        return self._insert(
            customer_id, category, label, description, InterestSourceType.MANUAL, actor_id
        )

    def update(
        self, interest_id: str, edits: InterestEdit, actor_id: str | None = None
    ) -> Interest | None:
        current = self.get(interest_id)
        if current is None:
            return None
        changes = edits.model_dump(exclude_none=True)
        if not changes:
            return current
        sets = ", ".join(f"{column} = ?" for column in changes)
        with wal_connect(self.db_path) as conn:
            conn.execute(
                f"UPDATE interests SET {sets}, updated_at = ? WHERE id = ?",
                (*changes.values(), datetime.now().isoformat(), interest_id),
            )
            self._audit(conn, interest_id, "edited", actor_id, changes)
        return self.get(interest_id)

    def archive(self, interest_id: str, actor_id: str | None = None) -> bool:
        with wal_connect(self.db_path) as conn:
            cur = conn.execute(
                "UPDATE interests SET status = 'archived', updated_at = ?"
                " WHERE id = ? AND status = 'active'",
                (datetime.now().isoformat(), interest_id),
            )
            if cur.rowcount:
                self._audit(conn, interest_id, "archived", actor_id, {})
        return cur.rowcount > 0

    def audit_trail(self, interest_id: str) -> list[InterestAuditEntry]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                "SELECT * FROM interest_audit WHERE interest_id = ? ORDER BY created_at, rowid",
                (interest_id,),
            ).fetchall()
        return [
            InterestAuditEntry(
                id=r["id"],
                interest_id=r["interest_id"],
                action=r["action"],
                actor_id=r["actor_id"],
                changes=load_json(r["changes"], {}),
                created_at=r["created_at"],
            )
            for r in rows
        ]
