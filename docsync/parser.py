"""
Document Parser

Turns the markdown text of a Capability or Enabler document into its
structured record. Parsing never fails on malformed markdown: every field
that cannot be found keeps its default (empty string, empty list or the enum
default), so hand-edited documents always load.

Preserved blocks (Technical Specifications, Development Plan) are located
first and hidden from every other extractor, so nothing inside them is ever
read as metadata or table content.
"""

from __future__ import annotations

import logging
from dataclasses import fields
from pathlib import Path
from typing import Union

from docsync import sections
from docsync.errors import DocumentParseError
from docsync.models import (
    CapabilityDocument,
    Document,
    DocumentType,
    EnablerDocument,
    new_document,
)

logger = logging.getLogger(__name__)


class DocumentParser:
    """Parser for capability and enabler markdown documents."""

    @classmethod
    def parse(
        cls, markdown_text: str, document_type: Union[DocumentType, str]
    ) -> Document:
        """
        Parse a markdown document into its structured record.

        Args:
            markdown_text: Raw markdown content of the document
            document_type: ``capability`` or ``enabler``

        Returns:
            CapabilityDocument or EnablerDocument with every field defined

        Raises:
            DocumentParseError: If markdown_text is not a string
            UnknownDocumentTypeError: If document_type is not recognized
        """
        if not isinstance(markdown_text, str):
            raise DocumentParseError(
                f"Expected markdown text, got {type(markdown_text).__name__}"
            )
        document_type = DocumentType.coerce(document_type)
        document = new_document(document_type)

        lines = sections.scan_lines(markdown_text)
        specs_block, plan_block = sections.find_preserved_blocks(lines)
        document.technical_specifications = sections.block_text(lines, specs_block)
        document.implementation_plan = sections.block_text(lines, plan_block)

        structured = sections.mask_ranges(
            markdown_text, [block for block in (specs_block, plan_block) if block]
        )

        cls._apply_metadata(document, structured)
        document.technical_overview = sections.extract_technical_overview(structured)
        document.purpose = sections.extract_purpose(structured)

        if isinstance(document, CapabilityDocument):
            cls._parse_capability(document, structured)
        elif isinstance(document, EnablerDocument):
            cls._parse_enabler(document, structured)

        logger.debug(
            f"Parsed {document_type.value} {document.id or '<no id>'} "
            f"({len(lines)} lines)"
        )
        return document

    @classmethod
    def parse_file(cls, path: Path, document_type: Union[DocumentType, str]) -> Document:
        """
        Parse a document file.

        Raises:
            DocumentParseError: If the file does not exist
        """
        path = Path(path)
        if not path.exists():
            raise DocumentParseError(f"Document file not found: {path}")
        return cls.parse(path.read_text(encoding="utf-8"), document_type)

    @classmethod
    def _apply_metadata(cls, document: Document, markdown: str) -> None:
        """Copy recognized metadata bullets onto fields the record has."""
        known = {f.name for f in fields(document)}
        for field_name, value in sections.extract_metadata(markdown).items():
            if field_name in known:
                setattr(document, field_name, value)

    @classmethod
    def _parse_capability(cls, document: CapabilityDocument, markdown: str) -> None:
        document.internal_upstream = sections.parse_table(
            markdown, "Internal Upstream Dependency"
        )
        document.internal_downstream = sections.parse_table(
            markdown, "Internal Downstream Impact"
        )
        document.external_upstream = sections.extract_labeled_line(
            markdown, sections.EXTERNAL_UPSTREAM_LABEL
        )
        document.external_downstream = sections.extract_labeled_line(
            markdown, sections.EXTERNAL_DOWNSTREAM_LABEL
        )
        document.enablers = sections.parse_enablers_table(markdown)

    @classmethod
    def _parse_enabler(cls, document: EnablerDocument, markdown: str) -> None:
        document.functional_requirements = sections.parse_functional_requirements(
            markdown
        )
        document.non_functional_requirements = (
            sections.parse_non_functional_requirements(markdown)
        )


def parse(markdown_text: str, document_type: Union[DocumentType, str]) -> Document:
    """Parse markdown into a CapabilityDocument or EnablerDocument."""
    return DocumentParser.parse(markdown_text, document_type)
