"""
Section extractors for Capability and Enabler markdown.

Each extractor understands exactly one construct: the metadata bullet list,
pipe tables (two-column dependency tables and header-mapped multi-column
tables), the Technical Overview / Purpose block, the bold-label external
dependency lines, and verbatim blocks that are captured but never interpreted.

All extractors share one line scanner that classifies headings and tracks
fenced code blocks, so a ``# comment`` inside a code fence is never mistaken
for a heading.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

from docsync.models import (
    Approval,
    DependencyRow,
    DocumentPriority,
    EnablerStatus,
    EnablerSummaryRow,
    RequirementPriority,
    RequirementRow,
    RequirementStatus,
)

logger = logging.getLogger(__name__)


# Placeholders the serializer writes for empty fields; they parse back to "".
PURPOSE_PLACEHOLDER = "[What is the purpose?]"
EXTERNAL_DEPENDENCY_PLACEHOLDER = "None identified."

TECHNICAL_OVERVIEW_HEADING = "Technical Overview"
PURPOSE_HEADING = "Purpose"
EXTERNAL_UPSTREAM_LABEL = "External Upstream Dependencies"
EXTERNAL_DOWNSTREAM_LABEL = "External Downstream Impact"

TECHNICAL_SPECIFICATIONS_HEADINGS = ("Technical Specifications",)
DEVELOPMENT_PLAN_HEADINGS = (
    "Development Plan",
    "Implementation Plan",
    "Capability Development Plan",
    "Enabler Development Plan",
)

# Metadata label -> record field name
METADATA_LABELS = {
    "Name": "name",
    "Owner": "owner",
    "Status": "status",
    "Approval": "approval",
    "Priority": "priority",
    "Analysis Review": "analysis_review",
    "Code Review": "code_review",
    "ID": "id",
    "Capability ID": "capability_id",
    "System": "system",
    "Component": "component",
}

ENABLER_FIELDS = ("id", "name", "description", "status", "approval", "priority")
FUNCTIONAL_REQUIREMENT_FIELDS = (
    "id", "name", "requirement", "priority", "status", "approval",
)
NON_FUNCTIONAL_REQUIREMENT_FIELDS = (
    "id", "name", "type", "requirement", "priority", "status", "approval",
)

ENABLER_DEFAULTS = {
    "status": EnablerStatus.IN_DRAFT.value,
    "approval": Approval.NOT_APPROVED.value,
    "priority": DocumentPriority.HIGH.value,
}
REQUIREMENT_DEFAULTS = {
    "priority": RequirementPriority.MUST_HAVE.value,
    "status": RequirementStatus.IN_DRAFT.value,
    "approval": Approval.NOT_APPROVED.value,
}

_HEADING_RE = re.compile(r"^(#{1,6})(?:\s+(.*?))?\s*$")
_FENCE_RE = re.compile(r"^(`{3,}|~{3,})")
_METADATA_RE = re.compile(r"^-\s*\*\*(?P<label>[^*]+)\*\*:\s*(?P<value>.+)$")
_SEPARATOR_RE = re.compile(r"^\|?\s*:?-+:?\s*(?:\|\s*:?-+:?\s*)*\|?$")
_CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")


# =============================================================================
# Line scanning
# =============================================================================


@dataclass
class Line:
    """One markdown line, classified once."""

    index: int
    raw: str
    text: str  # raw without a trailing carriage return
    in_fence: bool = False  # fence delimiters count as inside
    heading_level: int = 0  # 0 when not a heading
    heading_text: str = ""

    @property
    def is_heading(self) -> bool:
        return self.heading_level > 0

    @property
    def is_table_line(self) -> bool:
        return not self.in_fence and self.text.strip().startswith("|")

    @property
    def is_separator(self) -> bool:
        return bool(_SEPARATOR_RE.match(self.text.strip())) and "-" in self.text


def scan_lines(markdown: str) -> list[Line]:
    """Split markdown into classified lines."""
    lines: list[Line] = []
    fence: Optional[str] = None

    for index, raw in enumerate(markdown.split("\n")):
        text = raw.rstrip("\r")
        stripped = text.strip()
        line = Line(index=index, raw=raw, text=text)

        fence_match = _FENCE_RE.match(stripped)
        if fence is not None:
            line.in_fence = True
            if fence_match and fence_match.group(1)[0] == fence[0] and len(
                fence_match.group(1)
            ) >= len(fence):
                fence = None
        elif fence_match:
            line.in_fence = True
            fence = fence_match.group(1)
        else:
            heading = _HEADING_RE.match(stripped)
            if heading:
                line.heading_level = len(heading.group(1))
                line.heading_text = (heading.group(2) or "").strip()

        lines.append(line)

    return lines


def mask_ranges(markdown: str, ranges: Iterable[tuple[int, int]]) -> str:
    """Blank out line ranges (start inclusive, end exclusive), keeping line numbers."""
    raw_lines = markdown.split("\n")
    for start, end in ranges:
        for i in range(start, end):
            raw_lines[i] = ""
    return "\n".join(raw_lines)


def _join(lines: Sequence[Line]) -> str:
    return "\n".join(line.raw for line in lines)


def _heading_starts_with(line: Line, names: Iterable[str], levels: Iterable[int]) -> bool:
    return (
        line.heading_level in levels
        and any(line.heading_text.startswith(name) for name in names)
    )


def _block_end(lines: Sequence[Line], start: int, level: int) -> int:
    """Index of the first heading at ``level`` or above that differs from ``start``."""
    opening = lines[start].text.strip()
    for line in lines[start + 1:]:
        if line.is_heading and line.heading_level <= level and line.text.strip() != opening:
            return line.index
    return len(lines)


# =============================================================================
# Metadata
# =============================================================================


def extract_metadata(markdown: str) -> dict[str, str]:
    """Read ``- **Label**: value`` bullets into a field -> value dict.

    Only the labels in METADATA_LABELS are recognized and the first occurrence
    of each wins. Lines inside code fences are ignored.
    """
    values: dict[str, str] = {}
    for line in scan_lines(markdown):
        if line.in_fence:
            continue
        match = _METADATA_RE.match(line.text)
        if not match:
            continue
        field_name = METADATA_LABELS.get(match.group("label").strip())
        if field_name and field_name not in values:
            value = match.group("value").strip()
            if value:
                values[field_name] = value
    return values


# =============================================================================
# Free-text sections
# =============================================================================


def find_technical_overview(lines: Sequence[Line]) -> Optional[tuple[int, int]]:
    """Line range of the ``## Technical Overview`` block, if any."""
    for line in lines:
        if _heading_starts_with(line, [TECHNICAL_OVERVIEW_HEADING], [2]):
            return line.index, _block_end(lines, line.index, 2)
    return None


def extract_technical_overview(markdown: str) -> str:
    """Raw text of the Technical Overview block, heading included."""
    lines = scan_lines(markdown)
    block = find_technical_overview(lines)
    if block is None:
        return ""
    text = _join(lines[block[0]:block[1]]).rstrip()
    if _is_default_overview(text):
        return ""
    return text


def find_purpose(lines: Sequence[Line]) -> Optional[tuple[int, int]]:
    """Line range of the ``### Purpose`` body inside the Technical Overview.

    The range excludes the Purpose heading itself and ends at the next ``##``
    or ``###`` heading; deeper headings belong to the body.
    """
    block = find_technical_overview(lines)
    if block is None:
        return None
    start, end = block
    for line in lines[start + 1:end]:
        if _heading_starts_with(line, [PURPOSE_HEADING], [3]):
            body_end = end
            for following in lines[line.index + 1:end]:
                if following.is_heading and following.heading_level <= 3:
                    body_end = following.index
                    break
            return line.index + 1, body_end
    return None


def extract_purpose(markdown: str) -> str:
    """Body of ``### Purpose`` with surrounding blank lines trimmed."""
    lines = scan_lines(markdown)
    body = find_purpose(lines)
    if body is None:
        return ""
    purpose = _join(lines[body[0]:body[1]]).strip()
    if purpose == PURPOSE_PLACEHOLDER:
        return ""
    return purpose


def _is_default_overview(text: str) -> bool:
    meaningful = [line.strip() for line in text.split("\n") if line.strip()]
    return meaningful == [
        f"## {TECHNICAL_OVERVIEW_HEADING}",
        f"### {PURPOSE_HEADING}",
        PURPOSE_PLACEHOLDER,
    ]


def extract_labeled_line(markdown: str, label: str) -> str:
    """Value of the first ``**label**: value`` line."""
    pattern = re.compile(rf"\*\*{re.escape(label)}\*\*:\s*(.+)")
    for line in scan_lines(markdown):
        if line.in_fence or f"**{label}**" not in line.text:
            continue
        match = pattern.search(line.text)
        value = match.group(1).strip() if match else ""
        if value == EXTERNAL_DEPENDENCY_PLACEHOLDER:
            return ""
        return value
    return ""


# =============================================================================
# Verbatim blocks
# =============================================================================


def find_title(lines: Sequence[Line]) -> Optional[int]:
    """Index of the document title: a leading ``#`` heading followed by ``## Metadata``."""
    headings = [line for line in lines if line.is_heading]
    if not headings or headings[0].heading_level != 1:
        return None
    if any(h.heading_level == 2 and h.heading_text == "Metadata" for h in headings[1:]):
        return headings[0].index
    return None


def find_block_heading(
    lines: Sequence[Line],
    headings: Iterable[str],
    skip: Sequence[int] = (),
) -> Optional[int]:
    """Index of the first ``#``/``##`` heading that starts with one of ``headings``."""
    headings = tuple(headings)
    for line in lines:
        if line.index not in skip and _heading_starts_with(line, headings, [1, 2]):
            return line.index
    return None


def verbatim_block_end(
    lines: Sequence[Line], start: int, stop: Optional[int] = None
) -> int:
    """End of the verbatim block opened at ``start``.

    The block runs until a heading at the same level with different text, or
    until ``stop`` (the other preserved block's heading) when that comes first.
    Headings at other levels belong to the block.
    """
    opening = lines[start]
    end = len(lines)
    for line in lines[start + 1:]:
        if (
            line.is_heading
            and line.heading_level == opening.heading_level
            and line.text.strip() != opening.text.strip()
        ):
            end = line.index
            break
    if stop is not None and start < stop < end:
        return stop
    return end


def find_preserved_blocks(
    lines: Sequence[Line],
) -> tuple[Optional[tuple[int, int]], Optional[tuple[int, int]]]:
    """Ranges of the Technical Specifications and Development Plan blocks.

    The document title never opens a block. Each block stops where the other
    one begins, so the two never overlap whatever their order or levels.
    """
    title = find_title(lines)
    skip = [title] if title is not None else []

    specs_start = find_block_heading(lines, TECHNICAL_SPECIFICATIONS_HEADINGS, skip)
    plan_start = find_block_heading(lines, DEVELOPMENT_PLAN_HEADINGS, skip)

    specs = plan = None
    if specs_start is not None:
        specs = specs_start, verbatim_block_end(lines, specs_start, plan_start)
    if plan_start is not None:
        plan = plan_start, verbatim_block_end(lines, plan_start, specs_start)
    return specs, plan


def starts_with_heading(text: str, headings: Iterable[str]) -> bool:
    """True when the first line of ``text`` is a ``#``/``##`` heading in ``headings``."""
    lines = scan_lines(text.strip())
    return bool(lines) and _heading_starts_with(lines[0], tuple(headings), [1, 2])


def block_text(lines: Sequence[Line], block: Optional[tuple[int, int]]) -> Optional[str]:
    """Captured text of a block range, trailing whitespace trimmed."""
    if block is None:
        return None
    return _join(lines[block[0]:block[1]]).rstrip()


# =============================================================================
# Tables
# =============================================================================


class TableScanState(Enum):
    """States of the table line scanner."""

    SEEKING_SECTION = "seeking_section"
    IN_TABLE_HEADER = "in_table_header"
    IN_TABLE_ROWS = "in_table_rows"


@dataclass
class RawTable:
    """Header cells and data rows of one pipe table, cells trimmed."""

    header: list[str]
    rows: list[list[str]]


def split_row(text: str) -> list[str]:
    """Split a pipe row into trimmed cells.

    Empty cells produced by the outer pipes are dropped, interior empty cells
    are kept. Escaped pipes (``\\|``) stay inside their cell, unescaped.
    """
    cells = [cell.strip() for cell in _CELL_SPLIT_RE.split(text.strip())]
    if cells and cells[0] == "":
        cells.pop(0)
    if cells and cells[-1] == "":
        cells.pop()
    return [cell.replace("\\|", "|") for cell in cells]


def locate_section(lines: Sequence[Line], section_title: str) -> Optional[int]:
    """Index of the line that opens ``section_title``.

    Preference: a heading whose text equals the title, then a heading that
    contains it, then any line that contains it. This keeps
    "Functional Requirements" from matching "Non-Functional Requirements".
    """
    headings = [line for line in lines if line.is_heading]
    for line in headings:
        if line.heading_text == section_title:
            return line.index
    for line in headings:
        if section_title in line.heading_text:
            return line.index
    for line in lines:
        if not line.in_fence and section_title in line.text:
            return line.index
    return None


def scan_table(markdown: str, section_title: str) -> Optional[RawTable]:
    """Find the first pipe table under ``section_title``.

    Scanning starts at the section line: the first pipe line after it is the
    header, every later pipe line is a row, and a heading ends the table.
    A heading reached before any pipe line means the section has no table.
    """
    lines = scan_lines(markdown)
    start = locate_section(lines, section_title)
    if start is None:
        logger.debug(f"Section not found: {section_title!r}")
        return None

    section_level = lines[start].heading_level or 6
    state = TableScanState.SEEKING_SECTION
    table = RawTable(header=[], rows=[])

    for line in lines[start:]:
        if state == TableScanState.SEEKING_SECTION:
            state = TableScanState.IN_TABLE_HEADER
            continue

        if state == TableScanState.IN_TABLE_HEADER:
            if line.is_heading and line.heading_level <= section_level:
                logger.debug(f"Section {section_title!r} has no table")
                return None
            if line.is_table_line and not line.is_separator:
                table.header = split_row(line.text)
                state = TableScanState.IN_TABLE_ROWS
            continue

        if line.is_heading:
            break
        if line.is_table_line and not line.is_separator:
            table.rows.append(split_row(line.text))

    if state != TableScanState.IN_TABLE_ROWS:
        return None
    return table


def parse_table(markdown: str, section_title: str) -> list[DependencyRow]:
    """Parse the two-column dependency table under ``section_title``.

    Rows with fewer than two cells are malformed and skipped. Rows whose two
    cells are both empty are dropped; a row with one filled cell is kept.
    """
    table = scan_table(markdown, section_title)
    if table is None:
        return []

    result = []
    for cells in table.rows:
        if len(cells) < 2:
            logger.debug(f"Skipping malformed row under {section_title!r}: {cells}")
            continue
        row = DependencyRow(id=cells[0], description=cells[1])
        if row.id or row.description:
            result.append(row)
    return result


def map_columns(header: Sequence[str], fields: Sequence[str], width: int) -> list[Optional[str]]:
    """Assign a field to each of ``width`` columns.

    A header cell claims a field when exactly one field name is a substring of
    the lower-cased cell (an exact match breaks ties; a cell of three or more
    characters contained in a field name counts when nothing else matches).
    A field claimed by two columns is ambiguous and claimed by neither. Every
    column still without a field takes the field at its position, provided no
    header already claimed that field.
    """
    claims: list[Optional[str]] = []
    for j in range(width):
        cell = header[j].strip().lower() if j < len(header) else ""
        candidates: list[str] = []
        if cell:
            candidates = [f for f in fields if f in cell]
            if not candidates and len(cell) >= 3:
                candidates = [f for f in fields if cell in f]
            if len(candidates) > 1:
                candidates = [f for f in candidates if f == cell]
        claims.append(candidates[0] if len(candidates) == 1 else None)

    counts = Counter(claim for claim in claims if claim)
    claims = [claim if claim and counts[claim] == 1 else None for claim in claims]

    taken = {claim for claim in claims if claim}
    mapping: list[Optional[str]] = []
    for j, claim in enumerate(claims):
        if claim is None and j < len(fields) and fields[j] not in taken:
            claim = fields[j]
            taken.add(claim)
        mapping.append(claim)
    return mapping


def parse_mapped_table(
    markdown: str,
    section_title: str,
    fields: Sequence[str],
    defaults: dict[str, str],
) -> list[dict[str, str]]:
    """Parse a multi-column table into dicts keyed by ``fields``.

    Rows whose cells are all empty are dropped. Empty cells for fields in
    ``defaults`` take the default value; other missing fields are "".
    """
    table = scan_table(markdown, section_title)
    if table is None:
        return []

    width = max([len(table.header)] + [len(cells) for cells in table.rows])
    mapping = map_columns(table.header, fields, width)

    result = []
    for cells in table.rows:
        if not any(cells):
            continue
        values = {name: "" for name in fields}
        for column, value in zip(mapping, cells):
            if column is not None:
                values[column] = value
        for name, default in defaults.items():
            if name in values and not values[name]:
                values[name] = default
        result.append(values)
    return result


def parse_enablers_table(markdown: str, section_title: str = "Enablers") -> list[EnablerSummaryRow]:
    """Enabler summary rows from a capability's Enablers table."""
    rows = parse_mapped_table(markdown, section_title, ENABLER_FIELDS, ENABLER_DEFAULTS)
    return [EnablerSummaryRow(**row) for row in rows]


def parse_requirements_table(
    markdown: str, section_title: str, non_functional: bool = False
) -> list[RequirementRow]:
    """Requirement rows from an enabler's requirements table."""
    fields = NON_FUNCTIONAL_REQUIREMENT_FIELDS if non_functional else FUNCTIONAL_REQUIREMENT_FIELDS
    rows = parse_mapped_table(markdown, section_title, fields, REQUIREMENT_DEFAULTS)
    return [RequirementRow(**row) for row in rows]


def parse_functional_requirements(markdown: str) -> list[RequirementRow]:
    return parse_requirements_table(markdown, "Functional Requirements")


def parse_non_functional_requirements(markdown: str) -> list[RequirementRow]:
    return parse_requirements_table(
        markdown, "Non-Functional Requirements", non_functional=True
    )
