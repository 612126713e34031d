"""Durable, statused records behind each suggested change.

One artifact backs one field update or one interest suggestion. Artifacts
from the same proposal share ``batch_id`` (= proposal id). Status moves
pending -> accepted | edited | rejected exactly once and artifacts are never
deleted.
"""

import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog
from pydantic import Field

from db import dump_json, load_json, wal_connect
from shared_types import ArtifactStatus, ArtifactType, CreatorType

from .errors import ArtifactNotFoundError, ArtifactTransitionError
from .models import (
    InterestEdit,
    InterestProposal,
    ProfileUpdateProposal,
    ProposedFieldUpdate,
    ProposedNote,
    WireModel,
)

logger = structlog.get_logger()

TERMINAL_STATUSES = {ArtifactStatus.ACCEPTED, ArtifactStatus.EDITED, ArtifactStatus.REJECTED}


class Artifact(WireModel):
    id: str
    customer_id: str
    rm_id: str | None = None
    batch_id: str
    version: int = 1
    artifact_type: ArtifactType
    status: ArtifactStatus = ArtifactStatus.PENDING
    created_by_type: CreatorType = CreatorType.AGENT
    created_by_id: str | None = None
    resolved_by_id: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: str
    updated_at: str

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class NewArtifact(WireModel):
    """Creation input for one artifact."""

    customer_id: str
    batch_id: str
    payload: dict[str, Any]
    rm_id: str | None = None
    created_by_type: CreatorType = CreatorType.AGENT
    created_by_id: str | None = None


def profile_edit_payload(update: ProposedFieldUpdate) -> dict:
    return {
        "item_id": update.id,
        "field_key": update.field,
        "field_display_name": update.label,
        "proposed_value": update.proposed_value,
        "previous_value": update.current_value,
        "source_text": update.source,
        "confidence": update.confidence.value,
    }


def interest_payload(interest: InterestProposal) -> dict:
    return {
        "item_id": interest.id,
        "category": interest.category.value,
        "label": interest.label,
        "description": interest.description,
        "source_text": interest.source_text,
        "confidence": interest.confidence.value,
    }


class ArtifactStore:
    """SQLite persistence for artifacts."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS artifacts (
                    id TEXT PRIMARY KEY,
                    customer_id TEXT NOT NULL,
                    rm_id TEXT,
                    batch_id TEXT NOT NULL,
                    version INTEGER NOT NULL DEFAULT 1,
                    artifact_type TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'pending',
                    created_by_type TEXT NOT NULL,
                    created_by_id TEXT,
                    resolved_by_id TEXT,
                    payload TEXT NOT NULL DEFAULT '{}',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_artifacts_customer
                ON artifacts(customer_id, status, created_at)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_artifacts_batch
                ON artifacts(batch_id)
            """)

    @staticmethod
    def _row_to_artifact(row) -> Artifact:
        return Artifact(
            id=row["id"],
            customer_id=row["customer_id"],
            rm_id=row["rm_id"],
            batch_id=row["batch_id"],
            version=row["version"],
            artifact_type=ArtifactType(row["artifact_type"]),
            status=ArtifactStatus(row["status"]),
            created_by_type=CreatorType(row["created_by_type"]),
            created_by_id=row["created_by_id"],
            resolved_by_id=row["resolved_by_id"],
            payload=load_json(row["payload"], {}),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    # --- Creation ---

    def _create_many(self, artifact_type: ArtifactType, items: list[NewArtifact]) -> list[Artifact]:
        if not items:
            return []
        now = datetime.now().isoformat()
        ids = [uuid.uuid4().hex[:16] for _ in items]
        with wal_connect(self.db_path) as conn:
            conn.executemany(
                """INSERT INTO artifacts
                   (id, customer_id, rm_id, batch_id, artifact_type, status,
                    created_by_type, created_by_id, payload, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, 'pending', ?, ?, ?, ?, ?)""",
                [
                    (
                        artifact_id,
                        item.customer_id,
                        item.rm_id,
                        item.batch_id,
                        artifact_type.value,
                        item.created_by_type.value,
                        item.created_by_id,
                        dump_json(item.payload),
                        now,
                        now,
                    )
                    for artifact_id, item in zip(ids, items)
                ],
            )
        logger.info(
            "artifacts.created",
            artifact_type=artifact_type.value,
            count=len(items),
            batch_id=items[0].batch_id,
        )
        return [self.get(artifact_id) for artifact_id in ids]

    def create_profile_edit(self, item: NewArtifact) -> Artifact:
        return self._create_many(ArtifactType.PROFILE_EDIT, [item])[0]

    def create_profile_edits(self, items: list[NewArtifact]) -> list[Artifact]:
        return self._create_many(ArtifactType.PROFILE_EDIT, items)

    def create_interest_proposal(self, item: NewArtifact) -> Artifact:
        return self._create_many(ArtifactType.INTEREST_PROPOSAL, [item])[0]

    def create_interest_proposals(self, items: list[NewArtifact]) -> list[Artifact]:
        return self._create_many(ArtifactType.INTEREST_PROPOSAL, items)

    # --- Reads ---

    def get(self, artifact_id: str) -> Artifact | None:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM artifacts WHERE id = ?", (artifact_id,)).fetchone()
        return self._row_to_artifact(row) if row else None

    def require(self, artifact_id: str) -> Artifact:
        artifact = self.get(artifact_id)
        if artifact is None:
            raise ArtifactNotFoundError(artifact_id)
        return artifact

    def list_by_customer(
        self,
        customer_id: str,
        status: ArtifactStatus | list[ArtifactStatus] | None = None,
        artifact_type: ArtifactType | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Artifact]:
        query = "SELECT * FROM artifacts WHERE customer_id = ?"
        params: list[Any] = [customer_id]
        if status is not None:
            statuses = [status] if isinstance(status, str) else list(status)
            query += f" AND status IN ({', '.join('?' for _ in statuses)})"
            params.extend(str(s) for s in statuses)
        if artifact_type is not None:
            query += " AND artifact_type = ?"
            params.append(str(artifact_type))
        query += " ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_artifact(r) for r in rows]

    def list_by_batch(self, batch_id: str) -> list[Artifact]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                "SELECT * FROM artifacts WHERE batch_id = ? ORDER BY rowid", (batch_id,)
            ).fetchall()
        return [self._row_to_artifact(r) for r in rows]

    def list_pending_by_batch(self, batch_id: str) -> list[Artifact]:
        return [a for a in self.list_by_batch(batch_id) if a.status == ArtifactStatus.PENDING]

    # --- Transitions ---

    def _transition(
        self,
        artifact_id: str,
        target: ArtifactStatus,
        payload_updates: dict | None = None,
        actor_id: str | None = None,
    ) -> Artifact:
        """Move a pending artifact to ``target``.

        Replaying the status an artifact already has is a no-op; any other
        change to a terminal artifact raises ArtifactTransitionError.
        """
        artifact = self.require(artifact_id)
        if artifact.status == target:
            logger.debug("artifact.transition_replayed", artifact_id=artifact_id, status=target.value)
            return artifact
        if artifact.is_terminal:
            raise ArtifactTransitionError(artifact_id, artifact.status.value, target.value)

        payload = {**artifact.payload, **(payload_updates or {})}
        with wal_connect(self.db_path) as conn:
            cur = conn.execute(
                """UPDATE artifacts
                   SET status = ?, payload = ?, version = version + 1,
                       resolved_by_id = ?, updated_at = ?
                   WHERE id = ? AND status = 'pending'""",
                (target.value, dump_json(payload), actor_id, datetime.now().isoformat(), artifact_id),
            )
        if cur.rowcount == 0:
            # Another writer resolved it first; re-check against what they wrote
            return self._transition(artifact_id, target, payload_updates, actor_id)

        logger.info("artifact.transitioned", artifact_id=artifact_id, status=target.value)
        return self.require(artifact_id)

    def accept_profile_edit(self, artifact_id: str, actor_id: str | None = None) -> Artifact:
        return self._transition(artifact_id, ArtifactStatus.ACCEPTED, actor_id=actor_id)

    def accept_profile_edit_with_edit(
        self, artifact_id: str, edited_value: Any, actor_id: str | None = None
    ) -> Artifact:
        return self._transition(
            artifact_id, ArtifactStatus.EDITED, {"edited_value": edited_value}, actor_id
        )

    def reject(self, artifact_id: str, actor_id: str | None = None) -> Artifact:
        return self._transition(artifact_id, ArtifactStatus.REJECTED, actor_id=actor_id)

    reject_profile_edit = reject
    reject_interest_proposal = reject

    def accept_interest_proposal(
        self, artifact_id: str, edits: InterestEdit | None = None, actor_id: str | None = None
    ) -> Artifact:
        """Accepted as-is, or ``edited`` when the RM changed label or description."""
        if edits is None or edits.is_empty:
            return self._transition(artifact_id, ArtifactStatus.ACCEPTED, actor_id=actor_id)
        updates = {}
        if edits.label is not None:
            updates["edited_label"] = edits.label
        if edits.description is not None:
            updates["edited_description"] = edits.description
        return self._transition(artifact_id, ArtifactStatus.EDITED, updates, actor_id)

    # --- Reconstruction ---

    def reconstruct_proposal(self, proposal_id: str, customer_id: str) -> ProfileUpdateProposal | None:
        """Rebuild a proposal from its still-pending artifacts.

        Returns None when the batch has no pending artifacts for this customer.
        The note is not backed by an artifact, so the rebuilt note is empty.
        """
        pending = [a for a in self.list_pending_by_batch(proposal_id) if a.customer_id == customer_id]
        if not pending:
            return None

        field_updates = []
        interests = []
        for a in pending:
            p = a.payload
            if a.artifact_type == ArtifactType.PROFILE_EDIT:
                field_updates.append(
                    ProposedFieldUpdate(
                        id=p.get("item_id") or a.id,
                        field=p["field_key"],
                        label=p.get("field_display_name") or p["field_key"],
                        current_value=p.get("previous_value"),
                        proposed_value=p.get("proposed_value"),
                        confidence=p.get("confidence") or "medium",
                        source=p.get("source_text") or "",
                        artifact_id=a.id,
                    )
                )
            else:
                interests.append(
                    InterestProposal(
                        id=p.get("item_id") or a.id,
                        category=p["category"],
                        label=p["label"],
                        description=p.get("description"),
                        source_text=p.get("source_text") or "",
                        confidence=p.get("confidence") or "medium",
                        artifact_id=a.id,
                    )
                )

        return ProfileUpdateProposal(
            proposal_id=proposal_id,
            customer_id=customer_id,
            field_updates=tuple(field_updates),
            interest_proposals=tuple(interests),
            note=ProposedNote(id=f"{proposal_id}-note", content=""),
            created_at=min(a.created_at for a in pending),
        )
