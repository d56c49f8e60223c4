"""Dashboard aggregates computed from stored progress payloads."""
from typing import Iterable

from learnhub.schemas.progress import ProgressSummarySchema
from learnhub.services.progress import ProgressEntry


def _items(entry: ProgressEntry) -> list:
    """The attempt list of one entry; payloads without a list under "items" count as empty."""
    items = entry.data.get("items") if isinstance(entry.data, dict) else None
    return items if isinstance(items, list) else []


def count_attempts(entries: Iterable[ProgressEntry]) -> int:
    return sum(len(_items(e)) for e in entries)


def count_correct(entries: Iterable[ProgressEntry]) -> int:
    return sum(
        1
        for e in entries
        for item in _items(e)
        if isinstance(item, dict) and item.get("correct")
    )


def summarize_progress(entries: list[ProgressEntry], submission_count: int = 0) -> ProgressSummarySchema:
    return ProgressSummarySchema(
        entries=len(entries),
        total_attempts=count_attempts(entries),
        correct=count_correct(entries),
        submissions=submission_count,
    )


def recent_results(entries: list[ProgressEntry], limit: int = 20) -> list[dict]:
    """Flatten attempt items, each stamped with its entry's time, newest entry first."""
    results = []
    for entry in entries:
        stamp = entry.data.get("at") if isinstance(entry.data, dict) else None
        if stamp is None and entry.created_at is not None:
            stamp = entry.created_at.isoformat()
        for item in _items(entry):
            if isinstance(item, dict):
                results.append({**item, "timestamp": stamp})
    return results[:limit]
