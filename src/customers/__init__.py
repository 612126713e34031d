"""Customer profiles: schema, field registry and storage."""

from .errors import CrmRepositoryError, CustomerNotFoundError, NoteNotFoundError
from .fields import FieldRegistry, ValidationResult, registry
from .sections import PROFILE_SECTIONS, FieldDefinition, SectionDefinition
from .storage import Customer, Note, NoteInput, ProfileStore

__all__ = [
    "CrmRepositoryError",
    "CustomerNotFoundError",
    "NoteNotFoundError",
    "FieldRegistry",
    "ValidationResult",
    "registry",
    "PROFILE_SECTIONS",
    "FieldDefinition",
    "SectionDefinition",
    "Customer",
    "Note",
    "NoteInput",
    "ProfileStore",
]
