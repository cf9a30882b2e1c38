"""Tests for creating new capability and enabler documents."""

import random

from docsync.config import EngineConfig
from docsync.factory import create_document
from docsync.id_allocator import IdAllocator
from docsync.models import Approval, CapabilityDocument, EnablerDocument, Review


TEMPLATE = """# Template Enabler

## Metadata

- **Name**: Template Enabler
- **Type**: Enabler
- **Owner**: Template Owner
- **Status**: In Draft
- **Approval**: Not Approved
- **Priority**: Medium

## Technical Overview
### Purpose
Describe the enabler.

## Functional Requirements

| ID | Name | Requirement | Priority | Status | Approval |
|----|------|-------------|----------|--------|----------|
| FR-000001 | Example | Replace me | Must Have | In Draft | Not Approved |
"""


def fixed_allocator():
    return IdAllocator(clock=lambda: 1, rng=random.Random(0), tick=lambda: None)


class TestCreateWithoutTemplate:
    def test_capability_defaults(self):
        document = create_document("capability", allocator=fixed_allocator())
        assert isinstance(document, CapabilityDocument)
        assert document.id.startswith("CAP-")
        assert document.owner == "Product Team"
        assert document.status == "In Draft"
        assert document.approval == "Not Approved"
        assert document.analysis_review == "Required"
        assert document.enablers == []
        assert document.technical_specifications is None

    def test_enabler_gets_parent_and_review_flags(self):
        document = create_document(
            "enabler", capability_id="CAP-123456", allocator=fixed_allocator()
        )
        assert isinstance(document, EnablerDocument)
        assert document.id.startswith("ENB-")
        assert document.capability_id == "CAP-123456"
        assert document.code_review == "Not Required"

    def test_config_overrides_defaults(self):
        config = EngineConfig(
            default_owner="Platform Team",
            analysis_review=Review.NOT_REQUIRED,
            code_review=Review.REQUIRED,
            default_approval=Approval.PENDING,
        )
        document = create_document("enabler", config=config, allocator=fixed_allocator())
        assert document.owner == "Platform Team"
        assert document.analysis_review == "Not Required"
        assert document.code_review == "Required"
        assert document.approval == "Pending"

    def test_id_avoids_existing(self):
        first = create_document("capability", allocator=fixed_allocator())
        second = create_document(
            "capability", existing_ids=[first.id], allocator=fixed_allocator()
        )
        assert second.id != first.id


class TestCreateFromTemplate:
    def test_template_content_is_kept(self):
        document = create_document(
            "enabler",
            template_text=TEMPLATE,
            capability_id="CAP-654321",
            allocator=fixed_allocator(),
        )
        assert document.name == "Template Enabler"
        assert document.priority == "Medium"
        assert document.purpose == "Describe the enabler."
        assert [row.id for row in document.functional_requirements] == ["FR-000001"]
        assert document.capability_id == "CAP-654321"

    def test_owner_and_reviews_overlaid(self):
        document = create_document(
            "enabler", template_text=TEMPLATE, allocator=fixed_allocator()
        )
        assert document.owner == "Product Team"
        assert document.analysis_review == "Required"
        assert document.code_review == "Not Required"

    def test_fresh_id_assigned(self):
        document = create_document(
            "enabler", ["ENB-000100"], template_text=TEMPLATE, allocator=fixed_allocator()
        )
        assert document.id.startswith("ENB-")
        assert document.id != "ENB-000100"
