"""
Non-fatal checks on a structured document.

Parsing accepts anything; these checks report what a careful reviewer would
flag before saving. They never raise.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Iterable

from docsync.models import (
    Approval,
    CapabilityDocument,
    CapabilityStatus,
    DocumentPriority,
    EnablerDocument,
    EnablerStatus,
    RequirementPriority,
    RequirementRow,
    RequirementStatus,
    Review,
    StructuredDocument,
    enum_values,
)

_CAPABILITY_ID_RE = re.compile(r"^CAP-\d{6}$")
_ENABLER_ID_RE = re.compile(r"^ENB-\d{6}$")


def _check_value(warnings: list[str], label: str, value: str, allowed: list[str]) -> None:
    if value and value not in allowed:
        warnings.append(f"Unrecognized {label}: {value!r}")


def _check_duplicates(warnings: list[str], label: str, ids: Iterable[str]) -> None:
    counts = Counter(i for i in ids if i)
    for duplicate in sorted(i for i, n in counts.items() if n > 1):
        warnings.append(f"Duplicate {label} ID: {duplicate}")


def _check_requirements(
    warnings: list[str], label: str, prefix: str, rows: list[RequirementRow]
) -> None:
    _check_duplicates(warnings, label, (row.id for row in rows))
    for row in rows:
        if row.id and not re.match(rf"^{prefix}-\d+$", row.id):
            warnings.append(f"{label} ID {row.id} should start with {prefix}-")
        _check_value(warnings, f"{label} priority", row.priority, enum_values(RequirementPriority))
        _check_value(warnings, f"{label} status", row.status, enum_values(RequirementStatus))
        _check_value(warnings, f"{label} approval", row.approval, enum_values(Approval))


def validate_document(document: StructuredDocument) -> list[str]:
    """Return warnings for a document; an empty list means nothing to report."""
    warnings: list[str] = []

    if not document.name.strip():
        warnings.append("Missing document name")

    _check_value(warnings, "approval", document.approval, enum_values(Approval))
    _check_value(warnings, "priority", document.priority, enum_values(DocumentPriority))
    _check_value(warnings, "analysis review", document.analysis_review, enum_values(Review))

    if isinstance(document, CapabilityDocument):
        if not _CAPABILITY_ID_RE.match(document.id):
            warnings.append(f"Capability ID should look like CAP-123456, got {document.id!r}")
        _check_value(warnings, "status", document.status, enum_values(CapabilityStatus))
        _check_duplicates(warnings, "enabler", (row.id for row in document.enablers))
        for row in document.enablers:
            _check_value(warnings, "enabler status", row.status, enum_values(EnablerStatus))
        _check_duplicates(
            warnings, "upstream dependency", (row.id for row in document.internal_upstream)
        )
        _check_duplicates(
            warnings, "downstream dependency", (row.id for row in document.internal_downstream)
        )
        if document.id and any(row.id == document.id for row in document.internal_upstream):
            warnings.append("Capability lists itself as an upstream dependency")

    elif isinstance(document, EnablerDocument):
        if not _ENABLER_ID_RE.match(document.id):
            warnings.append(f"Enabler ID should look like ENB-123456, got {document.id!r}")
        if not document.capability_id:
            warnings.append("Enabler has no Capability ID")
        _check_value(warnings, "status", document.status, enum_values(EnablerStatus))
        _check_value(warnings, "code review", document.code_review, enum_values(Review))
        _check_requirements(
            warnings, "Functional requirement", "FR", document.functional_requirements
        )
        _check_requirements(
            warnings, "Non-functional requirement", "NFR", document.non_functional_requirements
        )

    return warnings
