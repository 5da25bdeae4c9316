"""Tests for the indexed priority queue."""
import random

import pytest

from mosaicmap.algorithms.priority_queue import BasicIndexable, IndexedPriorityQueue


def priority(element):
    return element.priority


def assert_heap(queue):
    """Every stored index matches its slot and no child is smaller than its parent."""
    heap = queue.extract_contents()
    for i, element in enumerate(heap):
        assert element.index == i
        if i > 0:
            assert heap[(i - 1) // 2].priority <= element.priority


class TestIndexedPriorityQueue:
    """Test heap operations and index bookkeeping."""

    def setup_method(self):
        self.rng = random.Random(42)

    def test_poll_returns_minimum(self):
        """Test that poll always yields the current minimum."""
        elements = [BasicIndexable(i, self.rng.random()) for i in range(50)]
        queue = IndexedPriorityQueue(priority)
        for element in elements:
            queue.add(element)
            assert_heap(queue)

        polled = []
        while not queue.is_empty():
            polled.append(queue.poll().priority)
            assert_heap(queue)
        assert polled == sorted(e.priority for e in elements)
        assert all(e.index == -1 for e in elements)

    def test_heapify_on_construction(self):
        """Test bottom-up construction from an existing sequence."""
        elements = [BasicIndexable(i, self.rng.randint(0, 20)) for i in range(31)]
        queue = IndexedPriorityQueue(priority, elements)
        assert len(queue) == 31
        assert_heap(queue)
        assert queue.peek().priority == min(e.priority for e in elements)

    def test_size_tracks_adds_and_removals(self):
        """Test that the size equals adds minus polls and removes."""
        elements = [BasicIndexable(i, float(i)) for i in range(10)]
        queue = IndexedPriorityQueue(priority)
        for element in elements:
            queue.add(element)
        queue.poll()
        assert queue.remove(elements[5])
        assert queue.size() == 8
        assert not queue.remove(elements[5])
        assert not queue.contains(elements[0])
        assert elements[5] not in queue
        assert elements[6] in queue

    def test_priority_changes(self):
        """Test re-positioning after key changes."""
        elements = [BasicIndexable(i, float(i)) for i in range(20)]
        queue = IndexedPriorityQueue(priority, elements)

        elements[15].priority = -1.0
        queue.priority_increased(elements[15])
        assert queue.peek() is elements[15]
        assert_heap(queue)

        elements[15].priority = 100.0
        queue.priority_decreased(elements[15])
        assert_heap(queue)
        assert queue.peek() is elements[0]

        elements[7].priority = -5.0
        queue.priority_changed(elements[7])
        assert queue.poll() is elements[7]
        assert_heap(queue)

    def test_random_operations_keep_invariant(self):
        """Test a random mix of adds, polls, removals and key changes."""
        queue = IndexedPriorityQueue(priority)
        live = []
        for step in range(500):
            action = self.rng.random()
            if action < 0.4 or not live:
                element = BasicIndexable(step, self.rng.random())
                queue.add(element)
                live.append(element)
            elif action < 0.6:
                polled = queue.poll()
                assert polled.priority == min(e.priority for e in live)
                live.remove(polled)
            elif action < 0.8:
                element = self.rng.choice(live)
                assert queue.remove(element)
                live.remove(element)
            else:
                element = self.rng.choice(live)
                element.priority = self.rng.random()
                queue.priority_changed(element)
            assert len(queue) == len(live)
            assert_heap(queue)

    def test_empty_queue(self):
        """Test peek and poll on an empty queue."""
        queue = IndexedPriorityQueue(priority)
        assert queue.peek() is None
        assert queue.poll() is None
        assert queue.is_empty()

    def test_none_rejected(self):
        """Test that adding None fails."""
        queue = IndexedPriorityQueue(priority)
        with pytest.raises(TypeError):
            queue.add(None)
        with pytest.raises(TypeError):
            IndexedPriorityQueue(priority, [BasicIndexable(1), None])

    def test_clear_resets_indices(self):
        """Test that clear marks every element as not queued."""
        elements = [BasicIndexable(i, float(i)) for i in range(5)]
        queue = IndexedPriorityQueue(priority, elements)
        queue.clear()
        assert len(queue) == 0
        assert all(e.index == -1 for e in elements)
