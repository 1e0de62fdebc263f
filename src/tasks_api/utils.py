from __future__ import annotations

from typing import Any, Dict, Iterable, List, Sequence, Union


# PUBLIC_INTERFACE
def pagination_envelope(
    results: Union[Sequence[int], Iterable[int]],
    count: int,
    limit: int,
    offset: int,
) -> Dict[str, Any]:
    """
    Build the pagination envelope for the task id listing.

    Args:
        results: The ids of the current page.
        count: Total number of tasks that match the query (ignoring pagination).
        limit: The limit used for pagination.
        offset: The offset used for pagination.

    Returns:
        Dict with keys: count, results, limit, offset.
    """
    materialized: List[int] = list(results) if not isinstance(results, list) else results
    return {
        "count": int(count),
        "results": materialized,
        "limit": int(limit),
        "offset": int(offset),
    }
