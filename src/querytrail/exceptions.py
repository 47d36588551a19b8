# Custom exceptions for QueryTrail

class QueryTrailError(Exception):
    """Base exception for all application-specific errors."""
    pass


class StoreError(QueryTrailError):
    """Raised when the record store cannot complete an operation."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"Store operation '{operation}' failed: {message}")


class SchemaError(StoreError):
    """Raised if the database schema cannot be created or migrated."""

    def __init__(self, message: str):
        super().__init__("init_schema", message)


class RecordValidationError(QueryTrailError):
    """Raised when a query record fails validation before it is saved."""

    def __init__(self, message: str, field: str = None):
        self.message = message
        self.field = field
        super().__init__(message)


class ConfigError(QueryTrailError):
    """Raised for configuration-related problems."""
    pass
