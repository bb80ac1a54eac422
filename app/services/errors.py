"""Domain errors raised by the services layer and translated to HTTP by the routers."""


class DocumentNotFoundError(LookupError):
    """No HTML document with the requested name exists in the content directory."""


class SchemaUnavailableError(LookupError):
    """The schema for a document is missing or malformed; re-analysis is required."""


class UnknownTableError(LookupError):
    """The record store has no table with the requested name."""


class InvalidDocumentError(ValueError):
    """The HTML document is empty or cannot be parsed into an element tree."""
