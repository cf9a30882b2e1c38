"""
Creation of new capability and enabler documents.

A new document starts either from a template (parsed like any other file, then
overlaid with the configured owner and review defaults) or, when no template is
available, from an empty record. Either way it receives a freshly allocated ID.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Union

from docsync.config import EngineConfig
from docsync.id_allocator import IdAllocator
from docsync.models import (
    Document,
    DocumentType,
    EnablerDocument,
    IdPrefix,
    new_document,
)
from docsync.parser import DocumentParser

logger = logging.getLogger(__name__)

ID_PREFIXES = {
    DocumentType.CAPABILITY: IdPrefix.CAP,
    DocumentType.ENABLER: IdPrefix.ENB,
}


def create_document(
    document_type: Union[DocumentType, str],
    existing_ids: Iterable[str] = (),
    *,
    template_text: Optional[str] = None,
    capability_id: Optional[str] = None,
    config: Optional[EngineConfig] = None,
    allocator: Optional[IdAllocator] = None,
) -> Document:
    """
    Build a new document ready for editing.

    Args:
        document_type: ``capability`` or ``enabler``
        existing_ids: IDs already in use for this document type
        template_text: Markdown template to start from, if one exists
        capability_id: Parent capability for a new enabler
        config: Defaults to overlay (owner, review flags, approval)
        allocator: ID allocator; built from config when omitted

    Returns:
        CapabilityDocument or EnablerDocument with a fresh ID
    """
    document_type = DocumentType.coerce(document_type)
    config = config or EngineConfig()
    allocator = allocator or config.build_allocator()

    if template_text is not None:
        document = DocumentParser.parse(template_text, document_type)
        logger.debug(f"New {document_type.value} from template")
    else:
        document = new_document(document_type)
        document.approval = config.default_approval.value

    document.owner = config.default_owner
    document.analysis_review = config.analysis_review.value

    if isinstance(document, EnablerDocument):
        document.code_review = config.code_review.value
        if capability_id:
            document.capability_id = capability_id

    document.id = allocator.generate(ID_PREFIXES[document_type], existing_ids)
    return document
