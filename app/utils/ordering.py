"""List reordering used by the drag-and-drop tables."""
from typing import List, TypeVar

T = TypeVar("T")


def move(items: List[T], from_index: int, to_index: int) -> List[T]:
    """Return a copy with the element at ``from_index`` moved to ``to_index``."""
    if not 0 <= from_index < len(items) or not 0 <= to_index < len(items):
        raise ValueError(f"reorder indexes out of range for {len(items)} items")
    reordered = list(items)
    reordered.insert(to_index, reordered.pop(from_index))
    return reordered
