"""
Exceptions raised by the document synchronization engine.

Malformed markdown is never an error: the parser degrades field by field.
These exceptions cover the truly exceptional cases only (wrong input types,
unknown document type tags, exhausted identifier space, bad configuration).
"""

from __future__ import annotations


class DocSyncError(Exception):
    """Base class for all docsync errors."""

    pass


class DocumentParseError(DocSyncError, TypeError):
    """Raised for input that is not a document: non-text markdown or a malformed record."""

    pass


class UnknownDocumentTypeError(DocSyncError, ValueError):
    """Raised for a document type tag other than capability or enabler."""

    pass


class DocumentTypeMismatchError(DocSyncError, TypeError):
    """Raised when a record is serialized under the wrong document type tag."""

    pass


class IdAllocationError(DocSyncError, ValueError):
    """Raised for an unknown ID prefix or when no free ID remains."""

    pass


class ConfigError(DocSyncError):
    """Raised when engine configuration cannot be validated."""

    pass
