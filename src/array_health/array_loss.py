"""Array data loss probability.

Uses the approximated MTTDL (Mean Time To Data Loss) model from
Garth Alan Gibson, "Redundant Disk Arrays: Reliable, Parallel Secondary
Storage", 1990. All times are in years.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from .errors import InvalidRedundancyError
from .poisson import tail_at_least

MAX_REDUNDANCY = 6

# (label, repair rate per year) for a full scrub/repair every 7, 30, 90 days
REPAIR_CADENCES: Tuple[Tuple[str, float], ...] = (
    ("1 Week", 365.0 / 7),
    ("1 Month", 365.0 / 30),
    ("3 Months", 365.0 / 90),
)


@dataclass
class LossRow:
    redundancy: int
    probabilities: List[float]


def check_redundancy(member_count: int, redundancy: int) -> None:
    if redundancy < 0 or redundancy >= member_count:
        raise InvalidRedundancyError(
            f"Redundancy {redundancy} is invalid for an array of {member_count} members"
        )


def annual_data_loss_probability(
    array_failure_rate: float,
    repair_rate_per_year: float,
    member_count: int,
    redundancy: int,
) -> float:
    check_redundancy(member_count, redundancy)

    if array_failure_rate == 0:
        return 0.0

    mtbf = member_count / array_failure_rate
    mttr = 1.0 / repair_rate_per_year

    # MTBF^(r+1) / MTTR^r as a product, which saturates to inf where ** raises
    mttdl = mtbf
    for _ in range(redundancy):
        mttdl *= mtbf / mttr
    for i in range(redundancy + 1):
        mttdl /= member_count - i

    raid_failure_rate = 1.0 / mttdl
    return tail_at_least(raid_failure_rate, 1)


def supported_levels(member_count: int) -> range:
    """Redundancy levels that can be evaluated for ``member_count`` members."""
    return range(1, min(MAX_REDUNDANCY, member_count - 1) + 1)


def loss_table(array_failure_rate: float, member_count: int) -> List[LossRow]:
    rows: List[LossRow] = []
    for level in supported_levels(member_count):
        rows.append(
            LossRow(
                redundancy=level,
                probabilities=[
                    annual_data_loss_probability(array_failure_rate, rate, member_count, level)
                    for _, rate in REPAIR_CADENCES
                ],
            )
        )
    return rows
