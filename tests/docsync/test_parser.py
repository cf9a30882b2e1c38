"""
Tests for the document parser.

The parser turns capability and enabler markdown into structured records. It
never fails on malformed markdown; only a non-string input or an unknown
document type raises.
"""

import pytest

from docsync.errors import DocumentParseError, UnknownDocumentTypeError
from docsync.models import (
    CapabilityDocument,
    DependencyRow,
    DocumentType,
    EnablerDocument,
    RequirementRow,
)
from docsync.parser import DocumentParser, parse


TITLE_LOOKS_LIKE_SECTION = """# Technical Specifications Portal

## Metadata

- **Name**: Technical Specifications Portal
- **ID**: CAP-654321
"""

NESTED_PLAN = """# Widget

## Metadata

- **Name**: Widget

# Technical Specifications

Details.

## Development Plan

Steps.
"""

APPENDIX_AFTER_SPECS = """# Signup Form

## Metadata

- **Name**: Signup Form

## Technical Specifications

Architecture notes.

# Appendix

Hand-written appendix.
"""

MASKED_TABLES = """# Widget

## Metadata

- **Name**: Widget

# Technical Specifications

## Enablers

| Enabler ID | Name | Description | Status | Approval | Priority |
|---|---|---|---|---|---|
| ENB-999999 | Sketch | Not a real enabler | In Draft | Not Approved | High |

- **Owner**: Someone Else
"""

PLACEHOLDERS = """# New Capability

## Metadata

- **Name**: New Capability
- **Type**: Capability
- **Owner**: Product Team
- **Status**: In Draft
- **Approval**: Not Approved
- **Priority**: High
- **Analysis Review**: Required

## Technical Overview
### Purpose
[What is the purpose?]

## Dependencies

### External Dependencies

**External Upstream Dependencies**: None identified.

**External Downstream Impact**: None identified.
"""


class TestCapabilityParsing:
    """Capability documents."""

    def test_returns_capability_document(self, capability_markdown):
        result = parse(capability_markdown, "capability")
        assert isinstance(result, CapabilityDocument)
        assert result.document_type == DocumentType.CAPABILITY

    def test_parses_metadata(self, capability_markdown):
        result = parse(capability_markdown, "capability")
        assert result.name == "Customer Onboarding"
        assert result.id == "CAP-123456"
        assert result.system == "CRM"
        assert result.component == "Intake"
        assert result.owner == "Product Team"
        assert result.status == "In Analysis"
        assert result.approval == "Pending"
        assert result.priority == "Medium"
        assert result.analysis_review == "Required"

    def test_parses_purpose_and_overview(self, capability_markdown):
        result = parse(capability_markdown, "capability")
        assert result.purpose == "Let new customers sign up without manual steps."
        assert result.technical_overview.startswith("## Technical Overview\n### Purpose")
        assert result.technical_overview.endswith("Web and mobile sign-up only.")

    def test_parses_dependency_tables(self, capability_markdown):
        result = parse(capability_markdown, "capability")
        assert result.internal_upstream == [
            DependencyRow("CAP-0087", "Auto-generated reverse dependency"),
            DependencyRow("CAP-1234", "Another dependency"),
        ]
        assert result.internal_downstream == []

    def test_parses_external_dependencies(self, capability_markdown):
        result = parse(capability_markdown, "capability")
        assert result.external_upstream == "Identity provider"
        assert result.external_downstream == ""

    def test_parses_enablers(self, capability_markdown):
        result = parse(capability_markdown, "capability")
        assert [row.id for row in result.enablers] == ["ENB-111111", "ENB-222222"]
        assert result.enablers[1].status == "Implemented"
        assert result.enablers[1].priority == "Low"


class TestEnablerParsing:
    """Enabler documents."""

    def test_parses_metadata(self, enabler_markdown):
        result = parse(enabler_markdown, "enabler")
        assert isinstance(result, EnablerDocument)
        assert result.id == "ENB-111111"
        assert result.capability_id == "CAP-123456"
        assert result.owner == "Jane Doe"
        assert result.status == "In Design"
        assert result.analysis_review == "Not Required"
        assert result.code_review == "Required"

    def test_parses_requirements(self, enabler_markdown):
        result = parse(enabler_markdown, "enabler")
        assert result.functional_requirements == [
            RequirementRow(
                id="FR-100001",
                name="Validate email",
                requirement="Reject malformed addresses",
                priority="Must Have",
                status="In Draft",
                approval="Not Approved",
            ),
            RequirementRow(
                id="FR-100002",
                name="Save draft",
                requirement="Keep partial input",
                priority="Could Have",
                status="Implemented",
                approval="Approved",
            ),
        ]
        assert result.non_functional_requirements == [
            RequirementRow(
                id="NFR-200001",
                name="Fast submit",
                type="Performance",
                requirement="Submit under 200ms",
                priority="Should Have",
                status="Verified",
                approval="Pending",
            )
        ]

    def test_level_two_preserved_blocks(self, enabler_markdown):
        result = parse(enabler_markdown, "enabler")
        assert result.technical_specifications == "## Technical Specifications\n\nCustom notes."
        assert result.implementation_plan == "## Implementation Plan\n\n1. Build it"

    def test_capability_only_metadata_is_ignored(self):
        markdown = "## Metadata\n\n- **System**: CRM\n- **Name**: E\n"
        result = parse(markdown, "enabler")
        assert result.name == "E"
        assert not hasattr(result, "system")


class TestPreservedBlocks:
    """Technical Specifications and Development Plan are captured, never interpreted."""

    def test_captures_blocks_verbatim(
        self, capability_markdown, technical_specifications_block, development_plan_block
    ):
        result = parse(capability_markdown, "capability")
        assert result.technical_specifications == technical_specifications_block
        assert result.implementation_plan == development_plan_block

    def test_heading_inside_code_fence_does_not_end_block(self, capability_markdown):
        result = parse(capability_markdown, "capability")
        assert "# not a heading" in result.technical_specifications
        assert "# Development Plan" not in result.technical_specifications

    def test_block_contents_are_not_parsed(self):
        """Tables and metadata bullets inside a preserved block stay there."""
        result = parse(MASKED_TABLES, "capability")
        assert result.enablers == []
        assert result.owner == ""
        assert "ENB-999999" in result.technical_specifications

    def test_absent_blocks_are_none(self):
        result = parse("## Metadata\n\n- **Name**: Bare\n", "capability")
        assert result.technical_specifications is None
        assert result.implementation_plan is None

    def test_title_is_not_a_preserved_block(self):
        result = parse(TITLE_LOOKS_LIKE_SECTION, "capability")
        assert result.name == "Technical Specifications Portal"
        assert result.id == "CAP-654321"
        assert result.technical_specifications is None

    def test_plan_heading_inside_specs_starts_plan(self):
        """A lower-level plan heading ends the specs block and opens the plan."""
        result = parse(NESTED_PLAN, "capability")
        assert result.technical_specifications == "# Technical Specifications\n\nDetails."
        assert result.implementation_plan == "## Development Plan\n\nSteps."

    def test_higher_level_heading_stays_in_block(self):
        """Only a same-level heading ends a block; a following ``#`` section is kept."""
        result = parse(APPENDIX_AFTER_SPECS, "enabler")
        assert result.technical_specifications == (
            "## Technical Specifications\n\nArchitecture notes.\n\n"
            "# Appendix\n\nHand-written appendix."
        )

    def test_same_level_heading_ends_block(self):
        markdown = "## Technical Specifications\n\nNotes.\n\n## Functional Requirements\n"
        assert parse(markdown, "enabler").technical_specifications == (
            "## Technical Specifications\n\nNotes."
        )

    @pytest.mark.parametrize(
        "heading",
        [
            "# Development Plan",
            "## Implementation Plan",
            "## Capability Development Plan",
            "## Enabler Development Plan",
        ],
    )
    def test_plan_heading_variants(self, heading):
        result = parse(f"## Metadata\n\n- **Name**: X\n\n{heading}\n\n1. step\n", "enabler")
        assert result.implementation_plan == f"{heading}\n\n1. step"


class TestMetadataEdgeCases:
    def test_first_occurrence_wins(self):
        markdown = "- **Status**: In Design\n- **Status**: Implemented\n"
        assert parse(markdown, "capability").status == "In Design"

    def test_empty_value_keeps_default(self):
        markdown = "- **Owner**: \n- **Status**:\n"
        result = parse(markdown, "capability")
        assert result.owner == ""
        assert result.status == "In Draft"

    def test_metadata_inside_code_fence_is_ignored(self):
        markdown = "```\n- **Name**: Example\n```\n- **Name**: Real\n"
        assert parse(markdown, "capability").name == "Real"


class TestPurpose:
    def test_deeper_headings_stay_in_purpose(self):
        markdown = (
            "## Technical Overview\n### Purpose\n\nIntro.\n#### Detail\nMore.\n"
            "### Scope\nElsewhere.\n"
        )
        assert parse(markdown, "capability").purpose == "Intro.\n#### Detail\nMore."

    def test_no_purpose_subsection(self):
        markdown = "## Technical Overview\n\nOnly overview text.\n"
        result = parse(markdown, "capability")
        assert result.purpose == ""
        assert result.technical_overview == markdown.rstrip()


class TestPlaceholders:
    def test_placeholders_parse_to_empty(self):
        result = parse(PLACEHOLDERS, "capability")
        assert result.purpose == ""
        assert result.technical_overview == ""
        assert result.external_upstream == ""
        assert result.external_downstream == ""


class TestDegradation:
    """Malformed input degrades field by field."""

    def test_empty_document_has_defaults(self):
        result = parse("", "capability")
        assert result.name == ""
        assert result.status == "In Draft"
        assert result.approval == "Not Approved"
        assert result.priority == "High"
        assert result.enablers == []
        assert result.internal_upstream == []
        assert result.technical_specifications is None

    def test_enabler_defaults(self):
        result = parse("", "enabler")
        assert result.status == "In Draft"
        assert result.code_review == "Not Required"
        assert result.functional_requirements == []

    def test_garbage_does_not_raise(self):
        garbage = "|||\n###\n- **\n```\n# unterminated fence\n| a |"
        result = parse(garbage, "capability")
        assert isinstance(result, CapabilityDocument)

    def test_windows_line_endings(self):
        markdown = "## Metadata\r\n\r\n- **Name**: Windows\r\n- **ID**: CAP-111111\r\n"
        result = parse(markdown, "capability")
        assert result.name == "Windows"
        assert result.id == "CAP-111111"


class TestParseErrors:
    def test_non_string_input(self):
        with pytest.raises(DocumentParseError):
            parse(None, "capability")

    def test_non_string_input_is_type_error(self):
        with pytest.raises(TypeError):
            parse(b"# bytes", "capability")

    def test_unknown_document_type(self):
        with pytest.raises(UnknownDocumentTypeError, match="epic"):
            parse("", "epic")

    def test_document_type_is_case_insensitive(self):
        assert isinstance(parse("", "Enabler"), EnablerDocument)
        assert isinstance(parse("", DocumentType.CAPABILITY), CapabilityDocument)


class TestParseFile:
    def test_parses_file(self, tmp_path, enabler_markdown):
        path = tmp_path / "ENB-111111.md"
        path.write_text(enabler_markdown, encoding="utf-8")
        result = DocumentParser.parse_file(path, "enabler")
        assert result.id == "ENB-111111"

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentParseError, match="not found"):
            DocumentParser.parse_file(tmp_path / "missing.md", "enabler")
