"""
docsync - Capability/Enabler document synchronization.

Parses capability and enabler markdown into structured records, serializes
records back into canonical markdown while preserving hand-written blocks, and
allocates collision-free identifiers.
"""

from docsync.errors import (
    DocSyncError,
    DocumentParseError,
    UnknownDocumentTypeError,
    DocumentTypeMismatchError,
    IdAllocationError,
    ConfigError,
)
from docsync.models import (
    DocumentType,
    CapabilityStatus,
    EnablerStatus,
    RequirementStatus,
    Approval,
    DocumentPriority,
    RequirementPriority,
    Review,
    IdPrefix,
    DependencyRow,
    EnablerSummaryRow,
    RequirementRow,
    StructuredDocument,
    CapabilityDocument,
    EnablerDocument,
    Document,
    new_document,
    document_from_dict,
)
from docsync.sections import parse_table
from docsync.parser import DocumentParser, parse
from docsync.serializer import DocumentSerializer, serialize, create_dependency_table
from docsync.id_allocator import (
    IdAllocator,
    generate_id,
    generate_capability_id,
    generate_enabler_id,
    generate_functional_requirement_id,
    generate_non_functional_requirement_id,
    collect_existing_ids,
)
from docsync.config import EngineConfig, load_config_from_pyproject
from docsync.factory import create_document
from docsync.validation import validate_document

__all__ = [
    # errors
    "DocSyncError",
    "DocumentParseError",
    "UnknownDocumentTypeError",
    "DocumentTypeMismatchError",
    "IdAllocationError",
    "ConfigError",
    # models
    "DocumentType",
    "CapabilityStatus",
    "EnablerStatus",
    "RequirementStatus",
    "Approval",
    "DocumentPriority",
    "RequirementPriority",
    "Review",
    "IdPrefix",
    "DependencyRow",
    "EnablerSummaryRow",
    "RequirementRow",
    "StructuredDocument",
    "CapabilityDocument",
    "EnablerDocument",
    "Document",
    "new_document",
    "document_from_dict",
    # parsing
    "parse_table",
    "DocumentParser",
    "parse",
    # serialization
    "DocumentSerializer",
    "serialize",
    "create_dependency_table",
    # id allocation
    "IdAllocator",
    "generate_id",
    "generate_capability_id",
    "generate_enabler_id",
    "generate_functional_requirement_id",
    "generate_non_functional_requirement_id",
    "collect_existing_ids",
    # lifecycle
    "EngineConfig",
    "load_config_from_pyproject",
    "create_document",
    "validate_document",
]
