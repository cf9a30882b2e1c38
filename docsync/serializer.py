"""
Document Serializer

Rebuilds canonical markdown from a structured record. The output depends only
on the record: section order is fixed per document type, every table is
written with its header and separator even when empty, and preserved blocks
(Technical Specifications, Development Plan) are spliced in exactly as they
were captured.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence, Union

from docsync import sections
from docsync.errors import DocumentTypeMismatchError
from docsync.models import (
    Approval,
    CapabilityDocument,
    DependencyRow,
    Document,
    DocumentPriority,
    DocumentType,
    EnablerDocument,
    EnablerStatus,
    EnablerSummaryRow,
    RequirementPriority,
    RequirementRow,
    RequirementStatus,
    Review,
    StructuredDocument,
)

logger = logging.getLogger(__name__)


DEPENDENCY_HEADER = ("Capability ID", "Description")
ENABLER_HEADER = ("Enabler ID", "Name", "Description", "Status", "Approval", "Priority")
FUNCTIONAL_HEADER = ("ID", "Name", "Requirement", "Priority", "Status", "Approval")
NON_FUNCTIONAL_HEADER = (
    "ID", "Name", "Type", "Requirement", "Priority", "Status", "Approval",
)


def _cell(value: Optional[str]) -> str:
    """Make a value safe for a single table cell."""
    return (value or "").replace("\r", "").replace("\n", " ").replace("|", "\\|").strip()


def _table(header: Sequence[str], rows: Iterable[Sequence[str]]) -> list[str]:
    """Header, separator, then one line per row or a single all-empty row."""
    lines = [
        "| " + " | ".join(header) + " |",
        "|" + "|".join("-" * (len(name) + 2) for name in header) + "|",
    ]
    for row in rows:
        lines.append("| " + " | ".join(_cell(value) for value in row) + " |")
    if len(lines) == 2:
        lines.append("|" + " |" * len(header))
    return lines


def create_dependency_table(dependencies: Sequence[DependencyRow]) -> str:
    """Render dependency rows as a two-column ``Capability ID | Description`` table.

    With no rows the table still has its header, separator and one empty row
    (``| | |``), so it parses back to an empty list.
    """
    rows = [(dep.id, dep.description) for dep in dependencies]
    return "\n".join(_table(DEPENDENCY_HEADER, rows)) + "\n"


class DocumentSerializer:
    """Serializer for capability and enabler records."""

    @classmethod
    def serialize(
        cls,
        document: StructuredDocument,
        document_type: Union[DocumentType, str, None] = None,
    ) -> str:
        """
        Render a record as markdown.

        Args:
            document: CapabilityDocument or EnablerDocument
            document_type: ``capability`` or ``enabler``; defaults to the
                record's own type

        Returns:
            Markdown text ending in a single newline

        Raises:
            DocumentTypeMismatchError: If the record is not of document_type
        """
        if document_type is None:
            document_type = document.document_type
        document_type = DocumentType.coerce(document_type)
        if document.document_type != document_type:
            raise DocumentTypeMismatchError(
                f"Cannot serialize a {document.document_type.value} document "
                f"as {document_type.value}"
            )

        blocks: list[str] = [
            f"# {document.name}".rstrip(),
            cls._render_metadata(document),
            cls._render_overview(document),
        ]
        if isinstance(document, CapabilityDocument):
            blocks.extend(cls._render_capability_sections(document))
        elif isinstance(document, EnablerDocument):
            blocks.extend(cls._render_enabler_sections(document))

        specs = cls._render_preserved(
            document.technical_specifications,
            sections.TECHNICAL_SPECIFICATIONS_HEADINGS,
            "Technical Specifications",
        )
        plan = cls._render_preserved(
            document.implementation_plan,
            sections.DEVELOPMENT_PLAN_HEADINGS,
            "Development Plan",
        )
        blocks.extend(block for block in (specs, plan) if block)

        logger.debug(f"Serialized {document_type.value} {document.id or '<no id>'}")
        return "\n\n".join(blocks) + "\n"

    # =========================================================================
    # Shared sections
    # =========================================================================

    @classmethod
    def _render_metadata(cls, document: Document) -> str:
        is_capability = isinstance(document, CapabilityDocument)
        lines = [
            "## Metadata",
            "",
            f"- **Name**: {document.name}",
            f"- **Type**: {'Capability' if is_capability else 'Enabler'}",
        ]
        if is_capability and document.system:
            lines.append(f"- **System**: {document.system}")
        if is_capability and document.component:
            lines.append(f"- **Component**: {document.component}")
        if document.id:
            lines.append(f"- **ID**: {document.id}")
        if not is_capability and document.capability_id:
            lines.append(f"- **Capability ID**: {document.capability_id}")
        lines.extend([
            f"- **Owner**: {document.owner}",
            f"- **Status**: {document.status}",
            f"- **Approval**: {document.approval}",
            f"- **Priority**: {document.priority}",
            f"- **Analysis Review**: {document.analysis_review or Review.REQUIRED.value}",
        ])
        if not is_capability:
            lines.append(
                f"- **Code Review**: {document.code_review or Review.NOT_REQUIRED.value}"
            )
        return "\n".join(line.rstrip() for line in lines)

    @classmethod
    def _render_overview(cls, document: Document) -> str:
        """Technical Overview with the Purpose body taken from ``purpose``.

        A captured overview keeps every other subsection as written; only the
        Purpose body is replaced (by the placeholder when ``purpose`` is empty).
        An overview without a Purpose subsection gets one appended.
        """
        purpose = document.purpose.strip()
        overview = document.technical_overview.strip()
        heading = f"## {sections.TECHNICAL_OVERVIEW_HEADING}"
        purpose_heading = f"### {sections.PURPOSE_HEADING}"

        if not overview:
            body = purpose or sections.PURPOSE_PLACEHOLDER
            return f"{heading}\n{purpose_heading}\n{body}"

        lines = sections.scan_lines(overview)
        if sections.find_technical_overview(lines[:1]) is None:
            overview = f"{heading}\n\n{overview}"
            lines = sections.scan_lines(overview)

        purpose_body = sections.find_purpose(lines)
        if purpose_body is None:
            if not purpose:
                return overview
            return f"{overview}\n\n{purpose_heading}\n{purpose}"

        replacement = (purpose or sections.PURPOSE_PLACEHOLDER).split("\n")
        raw = [line.raw for line in lines]
        start, end = purpose_body
        body = raw[start:end]
        if not any(text.strip() for text in body):
            spliced = raw[:start] + replacement + [""] + raw[end:]
        else:
            leading = 0
            while not body[leading].strip():
                leading += 1
            trailing = 0
            while not body[-1 - trailing].strip():
                trailing += 1
            spliced = (
                raw[:start + leading]
                + replacement
                + raw[end - trailing:end]
                + raw[end:]
            )
        return "\n".join(spliced).rstrip()

    @classmethod
    def _render_preserved(
        cls, text: Optional[str], headings: Sequence[str], default_heading: str
    ) -> Optional[str]:
        """A preserved block exactly as captured, outer whitespace trimmed.

        Text that does not open with one of its recognized headings is given
        ``# default_heading`` so that it parses back into the same field.
        """
        if not text or not text.strip():
            return None
        trimmed = text.strip()
        if sections.starts_with_heading(trimmed, headings):
            return trimmed
        return f"# {default_heading}\n\n{trimmed}"

    # =========================================================================
    # Capability sections
    # =========================================================================

    @classmethod
    def _render_capability_sections(cls, document: CapabilityDocument) -> list[str]:
        enablers = "\n".join(
            ["## Enablers", ""] + _table(ENABLER_HEADER, cls._enabler_rows(document.enablers))
        )
        dependencies = "\n".join([
            "## Dependencies",
            "",
            "### Internal Upstream Dependency",
            "",
            create_dependency_table(document.internal_upstream).rstrip(),
            "",
            "### Internal Downstream Impact",
            "",
            create_dependency_table(document.internal_downstream).rstrip(),
            "",
            "### External Dependencies",
            "",
            f"**{sections.EXTERNAL_UPSTREAM_LABEL}**: "
            f"{document.external_upstream.strip() or sections.EXTERNAL_DEPENDENCY_PLACEHOLDER}",
            "",
            f"**{sections.EXTERNAL_DOWNSTREAM_LABEL}**: "
            f"{document.external_downstream.strip() or sections.EXTERNAL_DEPENDENCY_PLACEHOLDER}",
        ])
        return [enablers, dependencies]

    @classmethod
    def _enabler_rows(cls, enablers: Sequence[EnablerSummaryRow]) -> list[tuple[str, ...]]:
        return [
            (
                enabler.id,
                enabler.name,
                enabler.description,
                enabler.status or EnablerStatus.IN_DRAFT.value,
                enabler.approval or Approval.NOT_APPROVED.value,
                enabler.priority or DocumentPriority.HIGH.value,
            )
            for enabler in enablers
        ]

    # =========================================================================
    # Enabler sections
    # =========================================================================

    @classmethod
    def _render_enabler_sections(cls, document: EnablerDocument) -> list[str]:
        functional = "\n".join(
            ["## Functional Requirements", ""]
            + _table(
                FUNCTIONAL_HEADER,
                [
                    (req.id, req.name, req.requirement) + cls._requirement_state(req)
                    for req in document.functional_requirements
                ],
            )
        )
        non_functional = "\n".join(
            ["## Non-Functional Requirements", ""]
            + _table(
                NON_FUNCTIONAL_HEADER,
                [
                    (req.id, req.name, req.type or "", req.requirement)
                    + cls._requirement_state(req)
                    for req in document.non_functional_requirements
                ],
            )
        )
        return [functional, non_functional]

    @classmethod
    def _requirement_state(cls, req: RequirementRow) -> tuple[str, str, str]:
        return (
            req.priority or RequirementPriority.MUST_HAVE.value,
            req.status or RequirementStatus.IN_DRAFT.value,
            req.approval or Approval.NOT_APPROVED.value,
        )


def serialize(
    document: StructuredDocument,
    document_type: Union[DocumentType, str, None] = None,
) -> str:
    """Render a CapabilityDocument or EnablerDocument as markdown."""
    return DocumentSerializer.serialize(document, document_type)
