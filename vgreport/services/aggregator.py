"""
Aggregator
==========
Folds a sequence of DefectRecords into a Report.

Grouping:
    key = (DefectKind, stack fingerprint)
    Single pass in input order; the first record of a key fixes the
    position of its group. Later records only bump count and bytes.

Totals:
    leak_count / leaked_bytes   — leak kinds
    error_count / error_bytes   — every other kind, OTHER included
    Unknown byte counts contribute 0.

The fold keeps nothing of the records beyond the first member's stack and
message, used as the group's representative trace.
"""
import logging
from dataclasses import dataclass
from typing import Sequence

from vgreport.core.config import FINGERPRINT_DEPTH
from vgreport.models.defect import DefectKind, DefectRecord, StackFrame
from vgreport.models.report import GroupedFinding, Report
from vgreport.utils.stack_fingerprint import generate_stack_fingerprint

logger = logging.getLogger(__name__)


@dataclass
class _GroupAccumulator:
    """Internal: mutable running totals for one group during the fold."""
    kind: DefectKind
    fingerprint: str
    stack: tuple[StackFrame, ...]
    message: str
    count: int = 0
    total_bytes: int = 0

    def freeze(self) -> GroupedFinding:
        return GroupedFinding(
            kind=self.kind,
            fingerprint=self.fingerprint,
            count=self.count,
            total_bytes=self.total_bytes,
            representative_stack=self.stack,
            representative_message=self.message,
        )


def aggregate(records: Sequence[DefectRecord], depth: int = FINGERPRINT_DEPTH) -> Report:
    """
    Group records by (kind, stack fingerprint) and compute totals.

    Parameters
    ----------
    records : Sequence[DefectRecord]
        Parser output, in document order. Not modified.
    depth : int
        Frames contributing to the fingerprint.

    Returns
    -------
    Report
        New immutable report; clean iff `records` is empty.
    """
    groups: dict[tuple[DefectKind, str], _GroupAccumulator] = {}
    leak_count = error_count = 0
    leaked_bytes = error_bytes = 0
    degraded_count = 0

    for record in records:
        fingerprint = generate_stack_fingerprint(record.kind, record.stack, depth)
        key = (record.kind, fingerprint)

        acc = groups.get(key)
        if acc is None:
            acc = _GroupAccumulator(
                kind=record.kind,
                fingerprint=fingerprint,
                stack=record.stack,
                message=record.message or "",
            )
            groups[key] = acc

        size = record.byte_count or 0
        acc.count += 1
        acc.total_bytes += size

        if record.kind.is_leak:
            leak_count += 1
            leaked_bytes += size
        else:
            error_count += 1
            error_bytes += size

        if record.degraded:
            degraded_count += 1

    report = Report(
        groups=tuple(acc.freeze() for acc in groups.values()),
        leak_count=leak_count,
        error_count=error_count,
        leaked_bytes=leaked_bytes,
        error_bytes=error_bytes,
        degraded_count=degraded_count,
        clean=len(records) == 0,
    )

    logger.info(
        "Aggregated %d record(s) into %d group(s): %d leak(s) (%d bytes), %d error(s)",
        len(records), len(report.groups), leak_count, leaked_bytes, error_count,
    )
    return report
