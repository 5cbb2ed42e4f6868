"""
Sprintly exception hierarchy.

- SprintlyError: base class for every known error
- ConfigError: runtime configuration problems
- StateError: persisted state cannot be read or written
- ImportFormatError: import text could not be parsed
- BackupError: backup document has an invalid structure
- ValidationError: a workflow was called with missing required fields
- NotFoundError: a referenced goal/task/sprint does not exist
"""
from typing import Optional


class SprintlyError(Exception):
    """Base class for Sprintly errors.

    Catching this handles every expected failure.
    """

    def __init__(self, message: str, hint: Optional[str] = None):
        """
        Args:
            message: error description
            hint: suggested action for the user
        """
        super().__init__(message)
        self.message = message
        self.hint = hint

    def get_user_message(self) -> str:
        """Return a user-facing message."""
        if self.hint:
            return f"{self.message}\n💡 {self.hint}"
        return self.message


class ConfigError(SprintlyError):
    """Configuration file is missing, malformed or invalid."""

    def __init__(self, message: str, config_path: Optional[str] = None):
        hint = f"Check the config file: {config_path}" if config_path else "Check the config file format"
        super().__init__(message, hint)
        self.config_path = config_path


class StateError(SprintlyError):
    """The persisted state slot could not be read or written."""

    def __init__(self, message: str, corrupted_data: Optional[str] = None):
        hint = "The saved data may be corrupted; export a backup and clear the slot"
        super().__init__(message, hint)
        self.corrupted_data = corrupted_data


class ImportFormatError(SprintlyError):
    """Import text does not match the declared format."""

    def __init__(self, message: str, fmt: Optional[str] = None):
        hint = f"Check that the content is valid {fmt.upper()}" if fmt else None
        super().__init__(message, hint)
        self.fmt = fmt


class BackupError(SprintlyError):
    """Backup document is missing required top-level fields."""

    def __init__(self, message: str = "Estrutura de backup inválida.", missing: Optional[list] = None):
        super().__init__(message, "Use a file produced by the export command")
        self.missing = missing or []


class ValidationError(SprintlyError):
    """Required fields are missing from a user request."""

    def __init__(self, message: str, fields: Optional[list] = None):
        super().__init__(message)
        self.fields = fields or []


class NotFoundError(SprintlyError):
    """A referenced record does not exist."""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id
