class ProdBoosterError(Exception):
    """Base class for every error value handed back through Err(...)."""


class StorageError(ProdBoosterError):
    """Durable storage failed (connection, IO, SQL)."""


class NotFoundError(ProdBoosterError):
    """Mutation target is not present in the in-memory collection."""


class ParseError(ProdBoosterError):
    """Structured form input (e.g. a date) could not be parsed."""


class ValidationError(ProdBoosterError):
    """A required form field was left empty."""
