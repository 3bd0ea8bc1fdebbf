"""
ETA service: estimated minutes until a newly queued order is ready.

    estimate(category, depth) = depth × base_minutes(category)

Depth counts every order Waiting or in an active stage (Mixing, Spraying,
Re-Mixing) plus the new order itself (QueueCounts.depth_for_new_order).
Pure functions; callers supply the counts.
"""

from config import settings
from domain.ports import QueueCounts


def base_minutes(category) -> int:
    """Per-order processing minutes for a category; unknown categories use the default."""
    key = getattr(category, "value", category)
    return settings.eta_base_minutes.get(key, settings.eta_default_minutes)


def estimate(category, depth: int) -> int:
    """Estimated minutes until ready for an order at `depth` in the queue."""
    if depth < 0:
        raise ValueError("queue depth must be non-negative")
    return depth * base_minutes(category)


def estimate_for_counts(category, counts: QueueCounts, offset: int = 0) -> int:
    """
    ETA for a new order given live counts.

    `offset` shifts the position for the i-th order of a batch placed together.
    """
    return estimate(category, counts.depth_for_new_order + offset)


def format_minutes(minutes: int) -> str:
    """Render minutes as '45min', '1hr 30min', '2hrs'."""
    hrs, mins = divmod(int(minutes), 60)
    if hrs > 0:
        text = f"{hrs}hr{'s' if hrs > 1 else ''}"
        if mins > 0:
            text += f" {mins}min"
        return text
    return f"{mins}min"
