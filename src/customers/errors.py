"""Customer repository errors."""


class CrmRepositoryError(Exception):
    """Base error for customer storage failures."""

    def __init__(self, message: str, code: str = "repository_error"):
        super().__init__(message)
        self.message = message
        self.code = code


class CustomerNotFoundError(CrmRepositoryError):
    def __init__(self, customer_id: str):
        super().__init__(f"Customer not found: {customer_id}", code="customer_not_found")
        self.customer_id = customer_id


class NoteNotFoundError(CrmRepositoryError):
    def __init__(self, note_id: str):
        super().__init__(f"Note not found: {note_id}", code="note_not_found")
        self.note_id = note_id
