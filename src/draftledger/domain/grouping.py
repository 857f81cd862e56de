"""Splitting of imported statement movements into draft-sized groups.

An import is either bucketed by booking month or chunked into fixed-size
parts. In monthly mode, months smaller than the configured minimum are merged
into their neighbours so that a sparse year does not produce a dozen tiny
drafts. Everything here is pure and deterministic: the same movements and
settings always produce the same groups.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from itertools import groupby
from typing import Iterable, Optional, Sequence

from draftledger.domain.entities import StatementMovement
from draftledger.domain.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES_PER_DRAFT = 250


class ImportSplitMode(str, Enum):
    """How an import is divided into drafts."""

    MONTHLY = "monthly"
    FIXED_SIZE = "fixed_size"
    MONTHLY_OR_FIXED = "monthly_or_fixed"


@dataclass(frozen=True)
class ImportSplitSettings:
    """Per-owner import split configuration."""

    mode: ImportSplitMode = ImportSplitMode.MONTHLY_OR_FIXED
    max_entries_per_draft: int = DEFAULT_MAX_ENTRIES_PER_DRAFT
    monthly_split_threshold: Optional[int] = None
    min_entries_per_draft: int = 1

    def __post_init__(self):
        if self.max_entries_per_draft < 1:
            raise ValidationError("max_entries_per_draft must be at least 1")
        if self.min_entries_per_draft < 1:
            raise ValidationError("min_entries_per_draft must be at least 1")
        if self.min_entries_per_draft > self.max_entries_per_draft:
            raise ValidationError("min_entries_per_draft must not exceed max_entries_per_draft")
        if self.monthly_split_threshold is not None and self.monthly_split_threshold < 1:
            raise ValidationError("monthly_split_threshold must be at least 1")

    @property
    def effective_threshold(self) -> int:
        if self.monthly_split_threshold is None:
            return self.max_entries_per_draft
        return self.monthly_split_threshold


@dataclass(frozen=True)
class MovementGroup:
    """Movements that end up in one statement draft."""

    label: str
    movements: tuple[StatementMovement, ...]
    is_split_part: bool = False
    year: Optional[int] = None
    month: Optional[int] = None

    @property
    def size(self) -> int:
        return len(self.movements)


@dataclass(frozen=True)
class ImportSplitInfo:
    """Summary of how one import was split."""

    mode: ImportSplitMode
    effective_monthly: bool
    draft_count: int
    total_movements: int
    max_entries_per_draft: int
    largest_draft_size: int
    monthly_threshold: int


def sort_movements(movements: Iterable[StatementMovement]) -> list[StatementMovement]:
    """Order movements by booking date, then subject."""
    return sorted(movements, key=lambda m: (m.booking_date, m.subject or ""))


def use_monthly_split(settings: ImportSplitSettings, total: int) -> bool:
    """Resolve the configured mode against the number of movements."""
    if settings.mode == ImportSplitMode.MONTHLY:
        return True
    if settings.mode == ImportSplitMode.FIXED_SIZE:
        return False
    return total > settings.effective_threshold


def _chunk(items: Sequence[StatementMovement], size: int) -> list[tuple[StatementMovement, ...]]:
    return [tuple(items[i : i + size]) for i in range(0, len(items), size)]


def _month_label(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def split_monthly(movements: Sequence[StatementMovement], max_entries: int) -> list[MovementGroup]:
    """Bucket movements by booking month, chunking months above max_entries."""
    groups = []
    for (year, month), bucket in groupby(
        movements, key=lambda m: (m.booking_date.year, m.booking_date.month)
    ):
        bucket = list(bucket)
        label = _month_label(year, month)
        if len(bucket) <= max_entries:
            groups.append(MovementGroup(label, tuple(bucket), False, year, month))
            continue
        for index, part in enumerate(_chunk(bucket, max_entries), start=1):
            groups.append(MovementGroup(f"{label} (Part {index})", part, True, year, month))
    return groups


def split_fixed_size(movements: Sequence[StatementMovement], max_entries: int) -> list[MovementGroup]:
    """Chunk the whole list into parts of at most max_entries."""
    parts = _chunk(movements, max_entries)
    if len(parts) == 1:
        return [MovementGroup("", parts[0])]
    return [
        MovementGroup(f"(Part {index})", part, True)
        for index, part in enumerate(parts, start=1)
    ]


def combine_groups(groups: Sequence[MovementGroup]) -> MovementGroup:
    """Merge consecutive groups into one, joining their distinct labels with '+'."""
    if len(groups) == 1:
        return groups[0]
    labels = []
    for group in groups:
        if group.label not in labels:
            labels.append(group.label)
    periods = {(g.year, g.month) for g in groups}
    year, month = periods.pop() if len(periods) == 1 else (None, None)
    movements = tuple(m for g in groups for m in g.movements)
    return MovementGroup("+".join(labels), movements, False, year, month)


def _total(groups: Sequence[MovementGroup]) -> int:
    return sum(g.size for g in groups)


def _build_blocks(
    run: Sequence[MovementGroup], min_size: int
) -> tuple[list[list[MovementGroup]], list[MovementGroup]]:
    """Accumulate a run into blocks of at least min_size; return blocks and the remainder."""
    blocks = []
    current = []
    for group in run:
        current.append(group)
        if _total(current) >= min_size:
            blocks.append(current)
            current = []
    return blocks, current


def _merge_without_anchors(groups: Sequence[MovementGroup], min_size: int) -> list[MovementGroup]:
    blocks, remainder = _build_blocks(groups, min_size)
    if remainder:
        if blocks:
            blocks[-1].extend(remainder)
        else:
            blocks.append(remainder)
    return [combine_groups(block) for block in blocks]


def _distribute_between(
    left: list[MovementGroup], right: list[MovementGroup], run: Sequence[MovementGroup]
) -> None:
    """Hand the small months between two anchors to the currently smaller side.

    The left anchor takes months from the front of the run and the right
    anchor from the back, so both stay contiguous. Ties go to the left.
    """
    front, back = 0, len(run) - 1
    taken_right = []
    while front <= back:
        if _total(left) <= _total(right) + _total(taken_right):
            left.append(run[front])
            front += 1
        else:
            taken_right.insert(0, run[back])
            back -= 1
    right[:0] = taken_right


def _merge_segment(groups: Sequence[MovementGroup], min_size: int) -> list[MovementGroup]:
    anchors = [i for i, g in enumerate(groups) if g.size >= min_size]
    if not anchors:
        return _merge_without_anchors(groups, min_size)

    parts = {i: [groups[i]] for i in anchors}

    # Leading run: standalone blocks, leftover joins the first anchor
    leading_blocks, leftover = _build_blocks(groups[: anchors[0]], min_size)
    parts[anchors[0]][:0] = leftover

    for left, right in zip(anchors, anchors[1:]):
        run = groups[left + 1 : right]
        if len(run) == 1:
            parts[right].insert(0, run[0])
        elif run:
            _distribute_between(parts[left], parts[right], run)

    # Trailing run: standalone blocks, remainder joins the previous block
    trailing_blocks, remainder = _build_blocks(groups[anchors[-1] + 1 :], min_size)
    if remainder:
        if trailing_blocks:
            trailing_blocks[-1].extend(remainder)
        else:
            parts[anchors[-1]].extend(remainder)

    merged = [combine_groups(block) for block in leading_blocks]
    merged.extend(combine_groups(parts[i]) for i in anchors)
    merged.extend(combine_groups(block) for block in trailing_blocks)
    return merged


def merge_groups(groups: Sequence[MovementGroup], min_size: int) -> list[MovementGroup]:
    """Merge monthly groups smaller than min_size into their neighbours.

    Split parts of oversized months are never merged; they cut the month
    list into independent segments.
    """
    if min_size <= 1:
        return list(groups)

    merged = []
    segment = []
    for group in groups:
        if group.is_split_part:
            if segment:
                merged.extend(_merge_segment(segment, min_size))
            segment = []
            merged.append(group)
        else:
            segment.append(group)
    if segment:
        merged.extend(_merge_segment(segment, min_size))
    return merged


def group_movements(
    movements: Iterable[StatementMovement], settings: ImportSplitSettings
) -> tuple[list[MovementGroup], ImportSplitInfo]:
    """Split movements into draft groups according to settings.

    Returns:
        Tuple of (groups in draft creation order, split summary)
    """
    ordered = sort_movements(movements)
    monthly = use_monthly_split(settings, len(ordered))

    if not ordered:
        groups = []
    elif monthly:
        groups = split_monthly(ordered, settings.max_entries_per_draft)
        groups = merge_groups(groups, settings.min_entries_per_draft)
    else:
        groups = split_fixed_size(ordered, settings.max_entries_per_draft)

    info = ImportSplitInfo(
        mode=settings.mode,
        effective_monthly=monthly,
        draft_count=len(groups),
        total_movements=len(ordered),
        max_entries_per_draft=settings.max_entries_per_draft,
        largest_draft_size=max((g.size for g in groups), default=0),
        monthly_threshold=settings.effective_threshold,
    )
    logger.debug(
        "Grouped %d movements into %d groups (monthly=%s)",
        info.total_movements,
        info.draft_count,
        monthly,
    )
    return groups, info
