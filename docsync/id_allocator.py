"""
Identifier Allocator

Hands out ``<PREFIX>-######`` identifiers for capabilities (CAP), enablers
(ENB), functional requirements (FR) and non-functional requirements (NFR).

Candidates are spread out rather than sequential: the low four digits of the
current time in milliseconds followed by two random digits. A candidate that
collides with an existing ID is retried after a clock tick, a bounded number
of times; after that a linear search from 100000 returns the first free
number, so allocation always terminates.

Uniqueness is only guaranteed against the ``existing_ids`` snapshot passed
in. Two callers allocating against the same snapshot can still pick the same
ID; the persistence layer has to reject duplicates on create.
"""

from __future__ import annotations

import logging
import random
import re
import time
from typing import Callable, Iterable, Optional, Union

from docsync.errors import IdAllocationError
from docsync.models import (
    CapabilityDocument,
    EnablerDocument,
    IdPrefix,
    StructuredDocument,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 100
SEQUENTIAL_START = 100000
SEQUENTIAL_END = 999999

ID_PATTERN = re.compile(r"^(CAP|ENB|FR|NFR)-\d{6}$")


def _clock_ms() -> int:
    return time.time_ns() // 1_000_000


def _sleep_one_ms() -> None:
    time.sleep(0.001)


def coerce_prefix(prefix: Union[IdPrefix, str]) -> IdPrefix:
    """Accept ``IdPrefix``, ``"CAP"`` or ``"CAP-"`` style prefixes."""
    if isinstance(prefix, IdPrefix):
        return prefix
    try:
        return IdPrefix(str(prefix).strip().rstrip("-").upper())
    except ValueError:
        raise IdAllocationError(
            f"Unknown ID prefix: {prefix!r} (expected one of "
            f"{', '.join(p.value for p in IdPrefix)})"
        ) from None


class IdAllocator:
    """Collision-free ID generator with injectable clock and randomness.

    Args:
        clock: Returns the current time in milliseconds
        rng: Source of the two random digits
        tick: Called between colliding attempts; should let the clock advance
        max_attempts: Spread-out candidates tried before the linear search
        sequential_start: First number tried by the linear search
    """

    def __init__(
        self,
        clock: Optional[Callable[[], int]] = None,
        rng: Optional[random.Random] = None,
        tick: Optional[Callable[[], None]] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        sequential_start: int = SEQUENTIAL_START,
    ) -> None:
        if max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")
        if not SEQUENTIAL_START <= sequential_start <= SEQUENTIAL_END:
            raise ValueError(
                f"sequential_start must be a six-digit number, got {sequential_start}"
            )
        self._clock = clock or _clock_ms
        self._rng = rng or random.Random()
        self._tick = tick or _sleep_one_ms
        self._max_attempts = max_attempts
        self._sequential_start = sequential_start

    def candidate_number(self) -> str:
        """Six digits: low four digits of the clock, then two random digits."""
        time_component = self._clock() % 10_000
        random_component = self._rng.randrange(100)
        return f"{time_component * 100 + random_component:06d}"

    def generate(
        self, prefix: Union[IdPrefix, str], existing_ids: Iterable[str] = ()
    ) -> str:
        """
        Allocate a new ID that is not in ``existing_ids``.

        Raises:
            IdAllocationError: If the prefix is unknown or every six-digit
                number from the sequential start upwards is taken
        """
        prefix = coerce_prefix(prefix)
        taken = existing_ids if isinstance(existing_ids, (set, frozenset)) else set(existing_ids)

        for attempt in range(self._max_attempts):
            candidate = f"{prefix.value}-{self.candidate_number()}"
            if candidate not in taken:
                return candidate
            logger.debug(f"ID collision on {candidate} (attempt {attempt + 1})")
            self._tick()

        logger.warning(
            f"{self._max_attempts} {prefix.value} candidates collided; "
            "falling back to sequential search"
        )
        for number in range(self._sequential_start, SEQUENTIAL_END + 1):
            candidate = f"{prefix.value}-{number}"
            if candidate not in taken:
                return candidate

        raise IdAllocationError(f"No free {prefix.value} IDs remain")


_default_allocator = IdAllocator()


def generate_id(
    prefix: Union[IdPrefix, str],
    existing_ids: Iterable[str] = (),
    allocator: Optional[IdAllocator] = None,
) -> str:
    """Allocate a ``<prefix>-######`` ID not present in ``existing_ids``."""
    return (allocator or _default_allocator).generate(prefix, existing_ids)


def generate_capability_id(existing_ids: Iterable[str] = ()) -> str:
    return generate_id(IdPrefix.CAP, existing_ids)


def generate_enabler_id(existing_ids: Iterable[str] = ()) -> str:
    return generate_id(IdPrefix.ENB, existing_ids)


def generate_functional_requirement_id(existing_ids: Iterable[str] = ()) -> str:
    return generate_id(IdPrefix.FR, existing_ids)


def generate_non_functional_requirement_id(existing_ids: Iterable[str] = ()) -> str:
    return generate_id(IdPrefix.NFR, existing_ids)


def collect_existing_ids(
    documents: Iterable[StructuredDocument],
    prefix: Union[IdPrefix, str, None] = None,
) -> set[str]:
    """Every ID used across a set of documents, optionally for one prefix.

    Includes document IDs, enabler summary rows, dependency references and
    requirement rows, so new IDs can be made unique project-wide.
    """
    ids: set[str] = set()
    for document in documents:
        ids.add(document.id)
        if isinstance(document, CapabilityDocument):
            ids.update(row.id for row in document.enablers)
            ids.update(row.id for row in document.internal_upstream)
            ids.update(row.id for row in document.internal_downstream)
        elif isinstance(document, EnablerDocument):
            ids.add(document.capability_id)
            ids.update(row.id for row in document.functional_requirements)
            ids.update(row.id for row in document.non_functional_requirements)

    ids.discard("")
    if prefix is not None:
        marker = f"{coerce_prefix(prefix).value}-"
        ids = {i for i in ids if i.startswith(marker)}
    return ids
