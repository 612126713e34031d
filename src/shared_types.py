"""Shared enums and types for clientbook."""

from enum import StrEnum


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FieldType(StrEnum):
    TEXT = "text"
    DATE = "date"
    ENUM = "enum"
    NUMBER = "number"
    BOOLEAN = "boolean"
    MULTI_SELECT = "multi_select"
    JSON = "json"


class Confidence(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NoteSource(StrEnum):
    MEETING = "meeting"
    CALL = "call"
    EMAIL = "email"
    VOICE_NOTE = "voice_note"


class ArtifactType(StrEnum):
    PROFILE_EDIT = "profile_edit"
    INTEREST_PROPOSAL = "interest_proposal"


class ArtifactStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EDITED = "edited"


class CreatorType(StrEnum):
    AGENT = "agent"
    ADMIN = "admin"
    SYSTEM = "system"


class InterestCategory(StrEnum):
    PERSONAL = "personal"
    FINANCIAL = "financial"


class InterestStatus(StrEnum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class InterestSourceType(StrEnum):
    SYSTEM_SUGGESTED = "system_suggested"
    MANUAL = "manual"


class ReviewStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
