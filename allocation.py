"""Split a daily time budget across work items.

Two policies are supported:

- ``evenly``: integer division, the first ``total % n`` items get one extra
  second.
- ``fairly``: random weights quantized to 5-minute blocks, with the last item
  absorbing whatever is left so the shares always sum to the budget.
"""

import random

from models import AllocationResult, WorkItem
from utils import format_duration
from validators import ValidationError, validate_number

EVENLY = "evenly"
FAIRLY = "fairly"
POLICIES = (EVENLY, FAIRLY)

GRANULARITY = 300  # 5 minutes
WEIGHT_RANGE = (1, 6)  # 5..30 minute increments
MIN_SHARE_SECONDS = 60
MAX_SHARE_SECONDS = 86400


class AllocationError(ValueError):
    """A computed share is outside the bounds Jira accepts."""


def _check_inputs(total_seconds: int, item_count: int) -> None:
    if total_seconds < 0:
        raise ValueError(f"total_seconds must be non-negative, got {total_seconds}")
    if item_count < 1:
        raise ValueError(f"item_count must be positive, got {item_count}")


def evenly(total_seconds: int, item_count: int) -> list[int]:
    """Distribute seconds so no two shares differ by more than one."""
    _check_inputs(total_seconds, item_count)
    base, remainder = divmod(total_seconds, item_count)
    return [base + 1 if i < remainder else base for i in range(item_count)]


def fairly(total_seconds: int, item_count: int, rng: random.Random | None = None) -> list[int]:
    """Distribute seconds in uneven 5-minute blocks.

    Every share but the last is a multiple of GRANULARITY. The last share is
    the residual, so the sum is exact even when the budget is not a multiple
    of GRANULARITY.
    """
    _check_inputs(total_seconds, item_count)
    if item_count == 1:
        return [total_seconds]

    rng = rng or random.Random()
    weights = [rng.randint(*WEIGHT_RANGE) for _ in range(item_count)]
    weight_sum = sum(weights)

    shares = []
    remaining = total_seconds
    for weight in weights[:-1]:
        share = round(total_seconds * weight / weight_sum / GRANULARITY) * GRANULARITY
        share = min(share, remaining)
        shares.append(share)
        remaining -= share
    shares.append(remaining)
    return shares


def allocate(
    total_seconds: int,
    item_count: int,
    policy: str = EVENLY,
    rng: random.Random | None = None,
) -> list[int]:
    """Return ``item_count`` non-negative shares summing to ``total_seconds``."""
    if policy == EVENLY:
        return evenly(total_seconds, item_count)
    if policy == FAIRLY:
        return fairly(total_seconds, item_count, rng)
    raise ValueError(f"Unknown allocation policy '{policy}', expected one of {POLICIES}")


def check_share(seconds) -> int:
    """Return the share if it is a whole number of seconds within bounds."""
    try:
        return validate_number(
            seconds,
            "Time in seconds",
            required=True,
            minimum=MIN_SHARE_SECONDS,
            maximum=MAX_SHARE_SECONDS,
            integer=True,
        )
    except ValidationError as e:
        raise AllocationError(str(e)) from e


def build_allocations(
    items: list[WorkItem],
    total_seconds: int,
    policy: str = FAIRLY,
    rng: random.Random | None = None,
) -> tuple[list[AllocationResult], list[tuple[WorkItem, int, AllocationError]]]:
    """Pair each item with its share.

    Returns:
        - allocations: items with a valid share, in input order
        - dropped: (item, share, error) for shares outside the bounds
    """
    shares = allocate(total_seconds, len(items), policy, rng)
    allocations = []
    dropped = []
    for item, share in zip(items, shares):
        try:
            seconds = check_share(share)
        except AllocationError as e:
            dropped.append((item, share, e))
            continue
        allocations.append(AllocationResult(item=item, seconds=seconds, duration=format_duration(seconds)))
    return allocations, dropped
