"""
Linear vesting with a cliff.

Pure functions over a LockupRecord and a timestamp. Nothing here reads the
clock or mutates the record, so every result is reproducible from its
arguments alone.

Rounding policy: the vested amount is always recomputed from the total
elapsed time, never accumulated from earlier releases. A unit lost to
flooring in one release is therefore paid by a later one, and the release
at or after the vesting end pays ``total_amount - released_amount`` so no
residue is left behind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .safe_math import mul_div

if TYPE_CHECKING:
    from .records import LockupRecord

PERCENT = 100


def _exists(record: "LockupRecord | None") -> bool:
    return record is not None and record.total_amount > 0


def is_fully_vested(record: "LockupRecord", now: int) -> bool:
    return now >= record.vesting_end


def in_cliff(record: "LockupRecord", now: int) -> bool:
    return now < record.cliff_end


def vested_amount(record: "LockupRecord | None", now: int) -> int:
    """
    Amount vested at ``now``, including anything already released.

    Returns 0 for a missing record, the frozen snapshot for a revoked one,
    0 during the cliff and exactly ``total_amount`` from the vesting end on.
    In between the linear share is floored.
    """
    if not _exists(record):
        return 0
    if record.revoked:
        return record.vested_at_revoke
    if in_cliff(record, now):
        return 0
    if is_fully_vested(record, now):
        return record.total_amount

    elapsed = now - record.start_time
    return mul_div(record.total_amount, elapsed, record.vesting_duration)


def releasable_amount(record: "LockupRecord | None", now: int) -> int:
    """
    Amount the beneficiary can release at ``now``.

    Never negative: a ``now`` earlier than a past release yields 0.
    """
    if not _exists(record):
        return 0
    if not record.revoked and is_fully_vested(record, now):
        return max(0, record.total_amount - record.released_amount)
    return max(0, vested_amount(record, now) - record.released_amount)


def vesting_progress(record: "LockupRecord | None", now: int) -> int:
    """
    Whole-percent progress of the schedule.

    Elapsed time is measured from ``start_time``, not from the end of the
    cliff, so progress stays at 0 through the cliff and then jumps straight
    to ``elapsed * 100 // vesting_duration``.
    """
    if not _exists(record):
        return 0
    if record.revoked or is_fully_vested(record, now):
        return PERCENT
    if in_cliff(record, now):
        return 0
    return mul_div(now - record.start_time, PERCENT, record.vesting_duration)


def remaining_vesting_time(record: "LockupRecord | None", now: int) -> int:
    """Seconds until full vesting; 0 when absent, revoked or complete."""
    if not _exists(record) or record.revoked or is_fully_vested(record, now):
        return 0
    return record.vesting_end - now
