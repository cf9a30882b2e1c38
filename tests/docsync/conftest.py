"""Shared markdown documents for the docsync tests."""

import pytest


TECHNICAL_SPECIFICATIONS_BLOCK = """# Technical Specifications

## Architecture

```mermaid
flowchart TD
# not a heading
  A[Signup] --> B[Verify]
```

- **Owner**: this bullet belongs to the diagram notes

| Component | Notes |
|-----------|-------|
| Gateway | rate limited |"""

DEVELOPMENT_PLAN_BLOCK = """# Development Plan

## Tasks

1. Build the form
2. Wire the verification email"""

CAPABILITY_MARKDOWN = f"""# Customer Onboarding

## Metadata

- **Name**: Customer Onboarding
- **Type**: Capability
- **System**: CRM
- **Component**: Intake
- **ID**: CAP-123456
- **Owner**: Product Team
- **Status**: In Analysis
- **Approval**: Pending
- **Priority**: Medium
- **Analysis Review**: Required

## Technical Overview
### Purpose
Let new customers sign up without manual steps.

### Scope
Web and mobile sign-up only.

## Enablers

| Enabler ID | Name | Description | Status | Approval | Priority |
|------------|------|-------------|--------|----------|----------|
| ENB-111111 | Signup Form | Collects details | In Draft | Not Approved | High |
| ENB-222222 | Email Check | Verifies address | Implemented | Approved | Low |

## Dependencies

### Internal Upstream Dependency

| Capability ID | Description |
|---------------|-------------|
| CAP-0087 | Auto-generated reverse dependency |
| CAP-1234 | Another dependency |

### Internal Downstream Impact

| Capability ID | Description |
|---------------|-------------|
| | |

### External Dependencies

**External Upstream Dependencies**: Identity provider

**External Downstream Impact**: None identified.

{TECHNICAL_SPECIFICATIONS_BLOCK}

{DEVELOPMENT_PLAN_BLOCK}
"""

ENABLER_MARKDOWN = """# Signup Form

## Metadata

- **Name**: Signup Form
- **Type**: Enabler
- **ID**: ENB-111111
- **Capability ID**: CAP-123456
- **Owner**: Jane Doe
- **Status**: In Design
- **Approval**: Approved
- **Priority**: High
- **Analysis Review**: Not Required
- **Code Review**: Required

## Technical Overview
### Purpose
Collect customer details.

## Functional Requirements

| ID | Name | Requirement | Priority | Status | Approval |
|----|------|-------------|----------|--------|----------|
| FR-100001 | Validate email | Reject malformed addresses | Must Have | In Draft | Not Approved |
| FR-100002 | Save draft | Keep partial input | Could Have | Implemented | Approved |

## Non-Functional Requirements

| ID | Name | Type | Requirement | Priority | Status | Approval |
|----|------|------|-------------|----------|--------|----------|
| NFR-200001 | Fast submit | Performance | Submit under 200ms | Should Have | Verified | Pending |

## Technical Specifications

Custom notes.

## Implementation Plan

1. Build it
"""


@pytest.fixture
def capability_markdown():
    return CAPABILITY_MARKDOWN


@pytest.fixture
def enabler_markdown():
    return ENABLER_MARKDOWN


@pytest.fixture
def technical_specifications_block():
    return TECHNICAL_SPECIFICATIONS_BLOCK


@pytest.fixture
def development_plan_block():
    return DEVELOPMENT_PLAN_BLOCK
