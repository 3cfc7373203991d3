"""
Error taxonomy shared by the storage, ingest and rendering packages.

The HTTP layer maps each class to a status code; everything below it only
raises.
"""


class DocgenError(Exception):
    """Base class for all expected application errors."""

    status_code = 500
    error = "Internal error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DocgenError):
    """A required field is missing or a value is out of range."""

    status_code = 400
    error = "Validation failed"


class NotFoundError(DocgenError):
    """An entity id does not exist."""

    status_code = 404
    error = "Not found"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} with ID {entity_id} does not exist")
        self.entity = entity
        self.entity_id = entity_id


class StorageError(DocgenError):
    """Reading or writing a record on disk failed."""

    status_code = 500
    error = "Storage failure"
