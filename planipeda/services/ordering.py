"""
Ordering helpers for progressions (planning sheets) and sequence items.

Items are dicts or objects carrying an `ordre` key or attribute. Every helper
returns a new list; dict items are copied before their `ordre` changes.
"""
from typing import Any, Iterable, List, Optional


def _get_ordre(item: Any) -> Optional[int]:
    if isinstance(item, dict):
        return item.get("ordre")
    return getattr(item, "ordre", None)


def _set_ordre(item: Any, value: int) -> Any:
    if isinstance(item, dict):
        updated = dict(item)
        updated["ordre"] = value
        return updated
    setattr(item, "ordre", value)
    return item


def next_order(items: Iterable[Any]) -> int:
    """Position for an item appended at the end: max(ordre) + 1, or 1 when empty."""
    orders = [o for o in (_get_ordre(item) for item in items) if o is not None]
    return max(orders) + 1 if orders else 1


def sort_by_order(items: Iterable[Any]) -> List[Any]:
    # Stable: items with the same ordre keep their relative position, missing ordre goes last
    return sorted(items, key=lambda item: (_get_ordre(item) is None, _get_ordre(item) or 0))


def renumber(items: Iterable[Any]) -> List[Any]:
    """Assign ordre = 1..n following the current list order."""
    return [_set_ordre(item, index) for index, item in enumerate(items, start=1)]


def array_move(items: List[Any], from_index: int, to_index: int) -> List[Any]:
    """Remove the element at from_index and insert it at to_index."""
    size = len(items)
    if not (0 <= from_index < size) or not (0 <= to_index < size):
        raise IndexError(f"Move {from_index} -> {to_index} out of range for {size} items")

    moved = list(items)
    element = moved.pop(from_index)
    moved.insert(to_index, element)
    return moved


def move_by_direction(items: List[Any], index: int, direction: str) -> List[Any]:
    """Arrow-button move. First item up and last item down are no-ops."""
    if direction not in ("up", "down"):
        raise ValueError(f"Unknown direction: {direction}")
    if not (0 <= index < len(items)):
        raise IndexError(f"Index {index} out of range for {len(items)} items")

    target = index - 1 if direction == "up" else index + 1
    if target < 0 or target >= len(items):
        return list(items)
    return array_move(items, index, target)
