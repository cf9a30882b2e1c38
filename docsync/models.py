"""
Structured records for Capability and Enabler documents.

A document is a tagged union over DocumentType: CapabilityDocument and
EnablerDocument share the metadata and free-text fields and each add their own
tables. Enumerated fields hold plain strings so that hand-edited values the
engine does not recognize still survive a parse/serialize cycle; the Enum
classes below define the canonical values and defaults.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, ClassVar, Optional, Union

from docsync.errors import DocumentParseError, UnknownDocumentTypeError


# =============================================================================
# Enumerations
# =============================================================================


class DocumentType(str, Enum):
    """Kind of specification document."""

    CAPABILITY = "capability"
    ENABLER = "enabler"

    @classmethod
    def coerce(cls, value: Union["DocumentType", str]) -> "DocumentType":
        """Accept either the enum or its tag string."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownDocumentTypeError(
                f"Unknown document type: {value!r} (expected 'capability' or 'enabler')"
            ) from None


class CapabilityStatus(str, Enum):
    IN_DRAFT = "In Draft"
    READY_FOR_ANALYSIS = "Ready for Analysis"
    IN_ANALYSIS = "In Analysis"
    READY_FOR_DESIGN = "Ready for Design"
    IN_DESIGN = "In Design"
    READY_FOR_IMPLEMENTATION = "Ready for Implementation"
    IN_IMPLEMENTATION = "In Implementation"
    IMPLEMENTED = "Implemented"


class EnablerStatus(str, Enum):
    IN_DRAFT = "In Draft"
    READY_FOR_ANALYSIS = "Ready for Analysis"
    IN_ANALYSIS = "In Analysis"
    READY_FOR_DESIGN = "Ready for Design"
    IN_DESIGN = "In Design"
    READY_FOR_IMPLEMENTATION = "Ready for Implementation"
    IN_IMPLEMENTATION = "In Implementation"
    IMPLEMENTED = "Implemented"
    READY_FOR_REFACTOR = "Ready for Refactor"
    IN_REFACTOR = "In Refactor"
    READY_FOR_RETIREMENT = "Ready for Retirement"
    IN_RETIREMENT = "In Retirement"
    RETIRED = "Retired"


class RequirementStatus(str, Enum):
    IN_DRAFT = "In Draft"
    READY_FOR_DESIGN = "Ready for Design"
    READY_FOR_IMPLEMENTATION = "Ready for Implementation"
    IMPLEMENTED = "Implemented"
    VERIFIED = "Verified"
    READY_FOR_REFACTOR = "Ready for Refactor"
    READY_FOR_RETIREMENT = "Ready for Retirement"
    RETIRED = "Retired"


class Approval(str, Enum):
    NOT_APPROVED = "Not Approved"
    PENDING = "Pending"
    APPROVED = "Approved"


class DocumentPriority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class RequirementPriority(str, Enum):
    MUST_HAVE = "Must Have"
    SHOULD_HAVE = "Should Have"
    COULD_HAVE = "Could Have"
    WONT_HAVE = "Won't Have"


class Review(str, Enum):
    REQUIRED = "Required"
    NOT_REQUIRED = "Not Required"


class IdPrefix(str, Enum):
    """Prefixes handed out by the identifier allocator."""

    CAP = "CAP"
    ENB = "ENB"
    FR = "FR"
    NFR = "NFR"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Canonical string values of an enumeration, in declaration order."""
    return [member.value for member in enum_cls]


# =============================================================================
# Table rows
# =============================================================================


@dataclass
class DependencyRow:
    """A reference to another capability in a dependency table."""

    id: str = ""
    description: str = ""


@dataclass
class EnablerSummaryRow:
    """Cached projection of an enabler, listed in its capability's Enablers table.

    The enabler's own file is authoritative; this row may drift.
    """

    id: str = ""
    name: str = ""
    description: str = ""
    status: str = EnablerStatus.IN_DRAFT.value
    approval: str = Approval.NOT_APPROVED.value
    priority: str = DocumentPriority.HIGH.value


@dataclass
class RequirementRow:
    """A functional or non-functional requirement of an enabler.

    ``type`` (e.g. Performance, Security) is only set for non-functional rows.
    """

    id: str = ""
    name: str = ""
    requirement: str = ""
    priority: str = RequirementPriority.MUST_HAVE.value
    status: str = RequirementStatus.IN_DRAFT.value
    approval: str = Approval.NOT_APPROVED.value
    type: Optional[str] = None


# =============================================================================
# Documents
# =============================================================================


@dataclass
class StructuredDocument:
    """Fields shared by every capability and enabler document."""

    DOCUMENT_TYPE: ClassVar[DocumentType]

    name: str = ""
    id: str = ""
    owner: str = ""
    status: str = CapabilityStatus.IN_DRAFT.value
    approval: str = Approval.NOT_APPROVED.value
    priority: str = DocumentPriority.HIGH.value
    analysis_review: str = Review.REQUIRED.value
    purpose: str = ""
    technical_overview: str = ""
    technical_specifications: Optional[str] = None
    implementation_plan: Optional[str] = None

    @property
    def document_type(self) -> DocumentType:
        return self.DOCUMENT_TYPE

    def to_dict(self) -> dict[str, Any]:
        """Plain dict with a ``type`` tag, suitable for JSON."""
        data = asdict(self)
        data["type"] = self.DOCUMENT_TYPE.value
        return data

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "StructuredDocument":
        """Deserialize from JSON string produced by ``to_json``."""
        document = document_from_dict(json.loads(json_str))
        if not isinstance(document, cls):
            raise UnknownDocumentTypeError(
                f"JSON holds a {document.document_type.value} document, "
                f"not a {cls.__name__}"
            )
        return document


@dataclass
class CapabilityDocument(StructuredDocument):
    """A top-level capability and the enablers that realize it."""

    DOCUMENT_TYPE: ClassVar[DocumentType] = DocumentType.CAPABILITY

    system: str = ""
    component: str = ""
    internal_upstream: list[DependencyRow] = field(default_factory=list)
    internal_downstream: list[DependencyRow] = field(default_factory=list)
    external_upstream: str = ""
    external_downstream: str = ""
    enablers: list[EnablerSummaryRow] = field(default_factory=list)


@dataclass
class EnablerDocument(StructuredDocument):
    """One implementable unit of a capability, with its requirements."""

    DOCUMENT_TYPE: ClassVar[DocumentType] = DocumentType.ENABLER

    status: str = EnablerStatus.IN_DRAFT.value
    code_review: str = Review.NOT_REQUIRED.value
    capability_id: str = ""
    functional_requirements: list[RequirementRow] = field(default_factory=list)
    non_functional_requirements: list[RequirementRow] = field(default_factory=list)


Document = Union[CapabilityDocument, EnablerDocument]

DOCUMENT_CLASSES: dict[DocumentType, type[StructuredDocument]] = {
    DocumentType.CAPABILITY: CapabilityDocument,
    DocumentType.ENABLER: EnablerDocument,
}


def new_document(document_type: Union[DocumentType, str]) -> Document:
    """Empty record of the given type with every field at its default."""
    return DOCUMENT_CLASSES[DocumentType.coerce(document_type)]()


def document_from_dict(data: dict[str, Any]) -> Document:
    """Rebuild a document from ``to_dict`` output, dispatching on ``type``.

    Raises:
        UnknownDocumentTypeError: If the ``type`` tag is missing or unknown
        DocumentParseError: If the record holds unknown fields or malformed rows
    """
    if not isinstance(data, dict):
        raise DocumentParseError(f"Expected a JSON object, got {type(data).__name__}")
    data = dict(data)
    document_type = DocumentType.coerce(data.pop("type", ""))

    try:
        if document_type == DocumentType.CAPABILITY:
            data["internal_upstream"] = [
                DependencyRow(**row) for row in data.get("internal_upstream", [])
            ]
            data["internal_downstream"] = [
                DependencyRow(**row) for row in data.get("internal_downstream", [])
            ]
            data["enablers"] = [
                EnablerSummaryRow(**row) for row in data.get("enablers", [])
            ]
            return CapabilityDocument(**data)

        data["functional_requirements"] = [
            RequirementRow(**row) for row in data.get("functional_requirements", [])
        ]
        data["non_functional_requirements"] = [
            RequirementRow(**row) for row in data.get("non_functional_requirements", [])
        ]
        return EnablerDocument(**data)
    except TypeError as e:
        raise DocumentParseError(f"Invalid {document_type.value} record: {e}") from e
