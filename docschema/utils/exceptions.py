"""Custom exceptions for schema inference."""


class DocSchemaError(Exception):
    """Base exception for schema inference errors."""
    pass


class SchemaClassificationError(DocSchemaError):
    """Raised when a value matches none of the known type tags."""
    pass


class InvalidInputError(DocSchemaError):
    """Raised when the input is not a sequence of documents."""
    pass


class SchemaStateError(DocSchemaError):
    """Raised when the schema tree is driven out of order."""
    pass


class ConfigurationError(DocSchemaError):
    """Raised when configuration is invalid."""
    pass


class ReportGenerationError(DocSchemaError):
    """Raised when a schema report cannot be written."""
    pass
