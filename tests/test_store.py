"""
Tests for the category store and synchronization primitives
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest
import numpy as np

from adaptive_resonance import CategoryStore, GeometryMismatch, GaussianParameters, Pattern
from adaptive_resonance.geometry import EllipsoidCategory, GaussianRule, frozen_array
from adaptive_resonance.locks import AtomicCounter, ReadWriteLock


def ellipsoid(index, centroid=(0.0, 0.0)):
    return EllipsoidCategory(index, frozen_array(centroid), frozen_array(np.zeros(len(centroid))), 0.0)


def wait_until(condition, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            return False
        time.sleep(0.001)
    return True


class TestCategoryStore:
    def test_append_in_creation_order(self):
        store = CategoryStore()
        for _ in range(3):
            store.append(ellipsoid(store.allocate_index()))
        assert [c.index for c in store.snapshot()] == [0, 1, 2]
        assert store.next_index == 3
        assert store.dimension == 2

    def test_snapshot_is_immutable_view(self):
        store = CategoryStore()
        store.append(ellipsoid(0))
        snapshot = store.snapshot()
        store.append(ellipsoid(1))
        assert len(snapshot) == 1
        assert isinstance(snapshot, tuple)

    def test_replace_swaps_object(self):
        store = CategoryStore()
        original = ellipsoid(0)
        store.append(original)
        updated = ellipsoid(0, (1.0, 1.0))
        assert store.replace(updated) == 0
        assert store.get(0) is updated

    def test_replace_unknown(self):
        with pytest.raises(KeyError):
            CategoryStore().replace(ellipsoid(5))

    def test_get_out_of_range(self):
        store = CategoryStore()
        store.append(ellipsoid(0))
        with pytest.raises(IndexError):
            store.get(1)
        with pytest.raises(IndexError):
            store.get(-1)

    def test_remove_keeps_indices(self):
        store = CategoryStore()
        for _ in range(4):
            store.append(ellipsoid(store.allocate_index()))
        assert store.remove([1, 2, 9]) == [1, 2]
        assert [c.index for c in store.snapshot()] == [0, 3]
        assert store.position_of(3) == 1
        assert store.position_of(1) is None
        assert store.find(2) is None
        assert store.allocate_index() == 4

    def test_usage_bookkeeping(self):
        store = CategoryStore()
        store.advance()
        store.append(ellipsoid(0))
        store.advance()
        store.advance()
        store.record_use(0)
        record = store.usage(0)
        assert record.usage_count == 2
        assert record.created_step == 1
        assert record.last_used_step == 3

    def test_mixed_geometries_rejected(self):
        store = CategoryStore()
        store.append(ellipsoid(0))
        gaussian = GaussianRule().create(Pattern([0.0, 0.0]), GaussianParameters(), 1)
        with pytest.raises(GeometryMismatch):
            store.append(gaussian)

    def test_duplicate_index_rejected(self):
        store = CategoryStore()
        store.append(ellipsoid(0))
        with pytest.raises(ValueError):
            store.append(ellipsoid(0))

    def test_clear(self):
        store = CategoryStore()
        store.append(ellipsoid(store.allocate_index()))
        store.advance()
        store.clear()
        assert len(store) == 0
        assert store.dimension is None
        assert store.step == 0
        assert store.allocate_index() == 0


class TestReadWriteLock:
    def test_readers_share(self):
        lock = ReadWriteLock()
        lock.acquire_read()
        lock.acquire_read()
        assert lock.readers == 2
        lock.release_read()
        lock.release_read()
        assert lock.readers == 0

    def test_unmatched_release(self):
        lock = ReadWriteLock()
        with pytest.raises(RuntimeError):
            lock.release_read()
        with pytest.raises(RuntimeError):
            lock.release_write()

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        entered = threading.Event()

        def reader():
            with lock.read_locked():
                entered.set()

        with lock.write_locked():
            assert lock.write_held
            thread = threading.Thread(target=reader)
            thread.start()
            assert not entered.wait(0.1)
        assert entered.wait(2.0)
        thread.join()

    def test_waiting_writer_blocks_new_readers(self):
        lock = ReadWriteLock()
        order = []

        def writer():
            with lock.write_locked():
                order.append("writer")

        def late_reader():
            with lock.read_locked():
                order.append("reader")

        lock.acquire_read()
        writer_thread = threading.Thread(target=writer)
        writer_thread.start()
        assert wait_until(lambda: lock._writers_waiting == 1)

        reader_thread = threading.Thread(target=late_reader)
        reader_thread.start()
        time.sleep(0.05)
        assert order == []

        lock.release_read()
        writer_thread.join(2.0)
        reader_thread.join(2.0)
        assert order == ["writer", "reader"]


class TestAtomicCounter:
    def test_increment_returns_value(self):
        counter = AtomicCounter()
        assert counter.increment() == 1
        assert counter.increment(5) == 6
        counter.set(0)
        assert counter.get() == 0

    def test_concurrent_increments(self):
        counter = AtomicCounter()

        def work(_):
            for _ in range(1000):
                counter.increment()

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(work, range(8)))
        assert counter.get() == 8000
