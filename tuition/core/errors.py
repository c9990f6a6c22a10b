"""Domain errors raised by services and translated to HTTP by the routers."""


class FeeManagerError(Exception):
    """Base class for tuition fee manager errors."""
    pass


class BackupValidationError(FeeManagerError):
    """Backup payload is malformed. Raised before any data is replaced."""
    pass


class NotFoundError(FeeManagerError):
    """A requested record does not exist."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} '{record_id}' not found")


class RenderError(FeeManagerError):
    """Invoice document could not be rendered."""
    pass
