from __future__ import annotations

from typing import Any, Dict, Iterable, List, Sequence, Union

from .models import Priority

# Display palette for each priority, in selector order.
PRIORITY_PALETTE: List[Dict[str, Any]] = [
    {"key": Priority.LOW, "label": "Low", "color": "#4ade80", "icon": "🟢"},
    {"key": Priority.MEDIUM, "label": "Medium", "color": "#fbbf24", "icon": "🟡"},
    {"key": Priority.HIGH, "label": "High", "color": "#ef4444", "icon": "🔴"},
]


# PUBLIC_INTERFACE
def list_envelope(
    items: Union[Sequence[Any], Iterable[Any]],
    completed_count: int,
    total_count: int,
) -> Dict[str, Any]:
    """
    Build the list-view envelope.

    Args:
        items: The todos to show, newest first.
        completed_count: Number of completed todos.
        total_count: Number of todos.

    Returns:
        Dict with keys: items, completedCount, totalCount, progress, allDone.
    """
    materialized: List[Any] = list(items) if not isinstance(items, list) else items
    total = int(max(total_count, 0))
    done = int(max(completed_count, 0))
    return {
        "items": materialized,
        "completedCount": done,
        "totalCount": total,
        "progress": (done / total) if total else 0.0,
        "allDone": total > 0 and done == total,
    }
