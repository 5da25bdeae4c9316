"""Indexed binary min-heap.

Elements store their own heap slot, so the queue can re-position an element
after its key changed in O(log n) instead of searching for it.
"""
from typing import Any, Callable, Generic, Iterable, List, Optional, TypeVar


class Indexable:
    """Mixin for objects stored in an ``IndexedPriorityQueue``.

    ``index`` is the element's current slot in the heap, or -1 when the
    element is not queued.
    """

    index: int = -1


class BasicIndexable(Indexable):
    """Indexable wrapper around an arbitrary value."""

    def __init__(self, value: Any, priority: float = 0.0):
        self.value = value
        self.priority = priority
        self.index = -1

    def __repr__(self) -> str:
        return f"BasicIndexable({self.value!r}, priority={self.priority}, index={self.index})"


T = TypeVar('T', bound=Indexable)


class IndexedPriorityQueue(Generic[T]):
    """Min-heap ordered by ``key`` over Indexable elements.

    "Priority increased" means the key became smaller, so the element moves
    towards the front. Calling the notification that matches the actual
    change is the caller's responsibility; it is not verified.
    """

    def __init__(self, key: Callable[[T], Any], elements: Optional[Iterable[T]] = None):
        """Initialize queue.

        Args:
            key: Function giving the ordering key of an element (smallest first)
            elements: Initial elements; heapified bottom-up in linear time
        """
        self._key = key
        self._heap: List[T] = list(elements) if elements is not None else []
        for i, element in enumerate(self._heap):
            if element is None:
                raise TypeError("IndexedPriorityQueue does not accept None")
            element.index = i
        self._heapify()

    def __len__(self) -> int:
        return len(self._heap)

    def size(self) -> int:
        return len(self._heap)

    def is_empty(self) -> bool:
        return not self._heap

    def peek(self) -> Optional[T]:
        return self._heap[0] if self._heap else None

    def contains(self, element: T) -> bool:
        index = element.index
        return 0 <= index < len(self._heap) and self._heap[index] is element

    __contains__ = contains

    def extract_contents(self) -> List[T]:
        """Elements in heap order (not sorted)."""
        return list(self._heap)

    def add(self, element: T) -> None:
        if element is None:
            raise TypeError("IndexedPriorityQueue does not accept None")
        self._heap.append(element)
        self._sift_up(len(self._heap) - 1, element)

    def poll(self) -> Optional[T]:
        """Remove and return the minimum element, or None when empty."""
        if not self._heap:
            return None
        result = self._heap[0]
        result.index = -1
        last = self._heap.pop()
        if self._heap:
            self._sift_down(0, last)
        return result

    def priority_increased(self, element: T) -> None:
        self._sift_up(element.index, element)

    def priority_decreased(self, element: T) -> None:
        self._sift_down(element.index, element)

    def priority_changed(self, element: T) -> None:
        self._sift_up(element.index, element)
        self._sift_down(element.index, element)

    def remove(self, element: T) -> bool:
        """Remove ``element``; returns False when it was not queued."""
        if not self.contains(element):
            return False
        index = element.index
        element.index = -1
        last = self._heap.pop()
        if index < len(self._heap):
            self._sift_down(index, last)
            if self._heap[index] is last:
                self._sift_up(index, last)
        return True

    def clear(self) -> None:
        for element in self._heap:
            element.index = -1
        self._heap.clear()

    def _heapify(self) -> None:
        for i in range(len(self._heap) // 2 - 1, -1, -1):
            self._sift_down(i, self._heap[i])

    def _sift_up(self, k: int, element: T) -> None:
        key = self._key(element)
        while k > 0:
            parent = (k - 1) >> 1
            above = self._heap[parent]
            if key >= self._key(above):
                break
            self._heap[k] = above
            above.index = k
            k = parent
        self._heap[k] = element
        element.index = k

    def _sift_down(self, k: int, element: T) -> None:
        key = self._key(element)
        size = len(self._heap)
        half = size >> 1
        while k < half:
            child = 2 * k + 1
            right = child + 1
            if right < size and self._key(self._heap[right]) < self._key(self._heap[child]):
                child = right
            below = self._heap[child]
            if key <= self._key(below):
                break
            self._heap[k] = below
            below.index = k
            k = child
        self._heap[k] = element
        element.index = k
